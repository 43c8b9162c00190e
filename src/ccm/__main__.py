"""Allow running ccm as `python -m ccm`, which hooks use when ccm is not on PATH."""

from ccm.cli import main

if __name__ == "__main__":
    main()
