#!/usr/bin/env python3
"""
CLI entry point for anicatalog.cli module.

This allows running: python -m anicatalog.cli
"""

from .main import cli

if __name__ == "__main__":
    cli()
