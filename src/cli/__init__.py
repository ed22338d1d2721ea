"""Command-line interface for the matching engine."""
