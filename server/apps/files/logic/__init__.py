"""Business logic layer for files app.

This package contains all business logic for the drive:
- Folder hierarchy: listing, creation, rename, move, delete, breadcrumbs
- File upload, download, tagging and search
- Share tokens: creation, resolution, update and revocation
- The single ownership check every operation goes through

All business logic should be implemented here, separate from
models (data layer) and infrastructure (external systems).

Reference: https://github.com/dry-python
for decoupling business logic from Django views.
"""
