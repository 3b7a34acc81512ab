"""Pure recording, encoding and signing logic (no CLI, no process execution)."""
