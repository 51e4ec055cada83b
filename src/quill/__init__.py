"""Quill blogging and social API."""
