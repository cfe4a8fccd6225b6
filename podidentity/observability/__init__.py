"""Logging setup for podidentity."""
