"""Utility modules for kindepurge."""
