"""Infrastructure layer for files app.

This package contains integrations with external systems:
- Blob storage adapters (S3-compatible object store, local filesystem)
- Metadata persistence through the Django ORM
- Upload spooling, checksum and MIME type helpers

Business logic talks to these only through ``protocols.py``.
"""
