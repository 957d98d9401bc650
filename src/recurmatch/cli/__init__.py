"""CLI layer for recurmatch application."""
