"""Subcommand parsers for the mxe CLI."""
