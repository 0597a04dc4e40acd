"""Non-IO helpers behind CLI commands."""
