"""Command line interface for bluecloud."""
