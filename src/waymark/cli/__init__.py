"""Typer sub-commands for the Waymark CLI."""
