"""Utility helpers for sdkdocs."""
