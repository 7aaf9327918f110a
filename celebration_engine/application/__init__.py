"""Celebration engine application layer."""
