"""Operator command line interface."""
