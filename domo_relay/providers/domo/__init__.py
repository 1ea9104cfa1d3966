"""Domo provider package.

Contains the async Domo API client and the services built on it: token
management, the dataset relay and the CSV codec.
"""
