"""Logging, metrics and clock utilities."""
