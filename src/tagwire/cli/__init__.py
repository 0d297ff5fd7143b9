"""Command-line interface for tagwire."""
