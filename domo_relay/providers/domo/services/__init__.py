"""Domo-backed services."""
