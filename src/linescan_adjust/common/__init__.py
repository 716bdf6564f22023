"""Shared utilities: logging and rotation helpers."""
