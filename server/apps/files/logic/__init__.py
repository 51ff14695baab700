"""Business logic layer for files app.

This package contains all business logic for file operations:
- Upload with compensation, download, delete
- Listing, search and rename of metadata
- Object key derivation and validation

All business logic should be implemented here, separate from
models (data layer) and infrastructure (external systems).
"""
