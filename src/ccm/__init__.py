"""Claude Code Monitor."""
