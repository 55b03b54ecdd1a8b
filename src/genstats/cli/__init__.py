"""Command line interface for genstats."""
