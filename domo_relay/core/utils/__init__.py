"""Core utility modules."""
