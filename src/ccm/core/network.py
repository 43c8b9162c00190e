"""Network address discovery for the mobile web UI."""

import ipaddress
import logging
import re
import socket
import subprocess
from dataclasses import dataclass

log = logging.getLogger(__name__)

TAILSCALE_NETWORK = ipaddress.ip_network("100.64.0.0/10")
TAILSCALE_BINARIES = ("tailscale", "/Applications/Tailscale.app/Contents/MacOS/Tailscale")
TAILSCALE_TIMEOUT_SECONDS = 2

_INET_LINE = re.compile(r"\binet (?:addr:)?(\d+\.\d+\.\d+\.\d+)")


def is_tailscale_ip(address: str) -> bool:
    """Check whether an address is in the Tailscale CGNAT range (100.64.0.0/10)."""
    try:
        ip = ipaddress.IPv4Address(address)
    except ValueError:
        return False
    return ip in TAILSCALE_NETWORK


def _interface_addresses() -> list[str]:
    """IPv4 addresses of the local interfaces, loopback excluded."""
    addresses: list[str] = []
    try:
        result = subprocess.run(
            ["ifconfig"], capture_output=True, text=True, timeout=2, check=False
        )
        addresses.extend(_INET_LINE.findall(result.stdout))
    except (OSError, subprocess.SubprocessError) as e:
        log.debug("ifconfig failed: %s", e)

    # Route probe: no packet is sent for a UDP connect
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(("10.255.255.255", 1))
            addresses.append(sock.getsockname()[0])
    except OSError:
        pass

    try:
        addresses.extend(
            info[4][0]
            for info in socket.getaddrinfo(socket.gethostname(), None, socket.AF_INET)
        )
    except OSError:
        pass

    unique = []
    for address in addresses:
        if address not in unique and not address.startswith("127."):
            unique.append(address)
    return unique


def get_tailscale_ip_from_cli() -> str | None:
    for binary in TAILSCALE_BINARIES:
        try:
            result = subprocess.run(
                [binary, "ip", "-4"],
                capture_output=True,
                text=True,
                timeout=TAILSCALE_TIMEOUT_SECONDS,
                check=False,
            )
        except (OSError, subprocess.SubprocessError):
            continue
        ip = result.stdout.strip().splitlines()[0] if result.stdout.strip() else ""
        if ip and is_tailscale_ip(ip):
            return ip
    return None


def get_tailscale_ip() -> str | None:
    """Get this machine's Tailscale address, preferring the tailscale CLI."""
    ip = get_tailscale_ip_from_cli()
    if ip:
        return ip
    for address in _interface_addresses():
        if is_tailscale_ip(address):
            return address
    return None


def get_local_ip() -> str:
    """Get the LAN address, skipping Tailscale addresses. Falls back to localhost."""
    for address in _interface_addresses():
        if not is_tailscale_ip(address):
            return address
    return "localhost"


@dataclass(frozen=True)
class NetworkAddresses:
    local: str
    tailscale: str | None


def get_network_addresses() -> NetworkAddresses:
    return NetworkAddresses(local=get_local_ip(), tailscale=get_tailscale_ip())
