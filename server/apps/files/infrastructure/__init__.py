"""Infrastructure layer for files app.

This package contains integrations with external systems:
- Custom storage backend (S3/MinIO/R2)
- Blob gateway used by the logic layer to store file content
- Metadata helpers (MIME type, name validation)

Keep infrastructure concerns separate from business logic.
"""
