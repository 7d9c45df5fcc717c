"""Textual TUI for the repo health dashboard."""
