"""Completion provider integrations."""
