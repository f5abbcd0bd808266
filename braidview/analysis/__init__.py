"""Highest-work path diagnostics."""
