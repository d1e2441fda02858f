"""Command-line interface for aicmt."""
