"""Stacksmith CLI commands."""
