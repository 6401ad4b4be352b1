"""
Adapter layer for the Quickshare API.

Contains the object store client (S3-compatible bucket) and the posts table
clients (hosted REST table or local SQLite), selected by deployment mode.
"""
