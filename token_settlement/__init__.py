"""Validation and authorization core for token settlement operations."""
