"""Command-line interface for TextFlow."""
