"""Figma REST API adapter."""
