"""Command-line interface for bnfdedupe."""
