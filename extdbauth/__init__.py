"""Authenticate against a user table in an external database."""

__version__ = "0.1.0"
