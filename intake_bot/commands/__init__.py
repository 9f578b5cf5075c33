"""Slash commands and the helpers they share with the UI components."""
