"""Command line tool for maestro-watch."""
