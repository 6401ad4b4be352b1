"""File sharing and text posts over a hosted object store and table."""
