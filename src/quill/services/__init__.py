"""Service layer for the Quill API."""
