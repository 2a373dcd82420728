"""Utility modules for edo-tools."""
