"""Command-line interface for logomuse."""
