"""Plugins shipped with profilegate."""
