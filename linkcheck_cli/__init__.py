"""Command-line interface for the link checker."""
