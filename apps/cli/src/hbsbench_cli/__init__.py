"""Command line interface for hbsbench."""
