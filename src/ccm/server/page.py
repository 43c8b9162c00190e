"""Mobile web page served by the ccm web server."""

INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1, viewport-fit=cover">
<title>Claude Code Monitor</title>
<style>
  :root { color-scheme: dark; }
  body {
    margin: 0; padding: 16px;
    font-family: -apple-system, BlinkMacSystemFont, "SF Mono", Menlo, monospace;
    background: #111; color: #ddd;
  }
  h1 { font-size: 18px; margin: 0 0 12px; }
  #status { font-size: 12px; color: #888; margin-bottom: 12px; }
  .card {
    background: #1c1c1e; border-radius: 10px; padding: 12px; margin-bottom: 10px;
  }
  .row { display: flex; align-items: center; gap: 8px; }
  .symbol { font-size: 16px; }
  .running { color: #999; }
  .waiting_input { color: #e5c07b; }
  .stopped { color: #98c379; }
  .name { flex: 1; overflow: hidden; text-overflow: ellipsis; white-space: nowrap; }
  .time { font-size: 12px; color: #888; }
  .message {
    font-size: 12px; color: #aaa; margin-top: 6px; max-height: 4.5em;
    overflow: hidden; white-space: pre-wrap;
  }
  form { display: flex; gap: 6px; margin-top: 8px; }
  input { flex: 1; padding: 8px; border-radius: 6px; border: 1px solid #333;
          background: #000; color: #ddd; }
  button { padding: 8px 12px; border-radius: 6px; border: 0; background: #3a3a3c;
           color: #ddd; }
  #empty { color: #888; text-align: center; margin-top: 40px; }
</style>
</head>
<body>
<h1>Claude Code Monitor</h1>
<div id="status">Connecting...</div>
<div id="sessions"></div>
<div id="empty" hidden>No active sessions</div>
<script>
const SYMBOLS = {running: "\\u25cf", waiting_input: "\\u25d0", stopped: "\\u2713"};
let socket;

function relativeTime(iso) {
  const seconds = Math.max(0, Math.floor((Date.now() - new Date(iso).getTime()) / 1000));
  const minutes = Math.floor(seconds / 60);
  const hours = Math.floor(minutes / 60);
  if (hours > 0) return hours + "h ago";
  if (minutes > 0) return minutes + "m ago";
  return seconds + "s ago";
}

function render(sessions) {
  const root = document.getElementById("sessions");
  root.replaceChildren();
  document.getElementById("empty").hidden = sessions.length > 0;
  for (const s of sessions) {
    const card = document.createElement("div");
    card.className = "card";

    const row = document.createElement("div");
    row.className = "row";
    const symbol = document.createElement("span");
    symbol.className = "symbol " + s.status;
    symbol.textContent = SYMBOLS[s.status] || "?";
    const name = document.createElement("span");
    name.className = "name";
    name.textContent = s.tab_name || s.cwd;
    const time = document.createElement("span");
    time.className = "time";
    time.textContent = relativeTime(s.updated_at);
    const focus = document.createElement("button");
    focus.textContent = "Focus";
    focus.onclick = () => send({type: "focus", sessionId: s.session_id});
    row.append(symbol, name, time, focus);
    card.append(row);

    if (s.last_message) {
      const message = document.createElement("div");
      message.className = "message";
      message.textContent = s.last_message;
      card.append(message);
    }

    const form = document.createElement("form");
    const input = document.createElement("input");
    input.placeholder = "Send to terminal";
    const submit = document.createElement("button");
    submit.textContent = "Send";
    form.append(input, submit);
    form.onsubmit = (event) => {
      event.preventDefault();
      if (!input.value.trim()) return;
      send({type: "sendText", sessionId: s.session_id, text: input.value});
      input.value = "";
    };
    card.append(form);
    root.append(card);
  }
}

function send(message) {
  if (socket && socket.readyState === WebSocket.OPEN) {
    socket.send(JSON.stringify(message));
  }
}

function connect() {
  const scheme = location.protocol === "https:" ? "wss" : "ws";
  socket = new WebSocket(scheme + "://" + location.host + "/ws");
  const status = document.getElementById("status");
  socket.onopen = () => { status.textContent = "Connected"; };
  socket.onclose = () => {
    status.textContent = "Disconnected, retrying...";
    setTimeout(connect, 2000);
  };
  socket.onmessage = (event) => {
    const message = JSON.parse(event.data);
    if (message.type === "sessions") {
      render(message.data);
    } else if (message.type === "sendTextResult" && !message.success) {
      status.textContent = message.error || "Send failed";
    } else if (message.type === "focusResult" && !message.success) {
      status.textContent = "Could not focus terminal";
    }
  };
}

connect();
</script>
</body>
</html>
"""
