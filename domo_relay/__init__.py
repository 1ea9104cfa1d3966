"""Domo relay: proxies dataset reads/writes and tokens between a front end and the Domo API."""

__version__ = "1.0.0"
