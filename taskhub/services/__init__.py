"""Recurring template services."""
