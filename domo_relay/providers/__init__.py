"""Upstream platform integrations."""
