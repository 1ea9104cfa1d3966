"""Configuration, errors, logging and shared utilities."""
