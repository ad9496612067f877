"""Command line tool for resolving releases in a delivery pipeline."""
