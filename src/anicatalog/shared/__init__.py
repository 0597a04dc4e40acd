"""Types and schemas shared across the domain, use cases, adapters and CLI."""
