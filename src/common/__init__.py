"""Shared helpers for HTTP, logging and the manifest text format."""
