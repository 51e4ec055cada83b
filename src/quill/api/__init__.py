"""HTTP surface of the Quill API."""
