"""Command-line interface for granted."""
