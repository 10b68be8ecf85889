"""S3 storage backend for drive blobs."""

import logging
import uuid
from typing import Any, final, override

from django.core.exceptions import SuspiciousFileOperation
from django.core.files.base import ContentFile
from storages.backends.s3 import S3Storage

logger = logging.getLogger(__name__)


@final
class FileStorage(S3Storage):
    """S3 storage backend holding drive blobs.

    Blobs are opaque: every one lives at ``<blob_prefix>/<random hex>``
    and its key is the storage id kept on the File record. Keys outside
    the prefix are never written or deleted through this backend.

    Extends django-storages S3Storage with:
    - The ``blob_prefix`` setting and key generation
    - Logging around every write and delete
    - Best-effort rollback of uploads whose record was never written
    """

    blob_prefix: str

    @override
    def get_default_settings(self) -> dict[str, Any]:
        default_settings = super().get_default_settings()
        default_settings['blob_prefix'] = 'blobs'
        return default_settings

    def new_blob_name(self) -> str:
        """Fresh key inside the blob prefix."""
        return f'{self.blob_prefix}/{uuid.uuid4().hex}'

    def is_blob_name(self, name: str) -> bool:
        """Whether a key lies inside the blob prefix."""
        return name.startswith(f'{self.blob_prefix}/')

    def save_blob(self, content: bytes) -> str:
        """Store raw bytes under a fresh key.

        Args:
            content: Blob content.

        Returns:
            Storage key, used as the blob's storage id.
        """
        return self.save(self.new_blob_name(), ContentFile(content))

    @override
    def save(  # noqa: WPS211
        self,
        name: str,
        content: Any,
        max_length: int | None = None,
    ) -> str:
        """Save blob to S3 with logging.

        Args:
            name: Storage key for the blob.
            content: Blob content (file-like object).
            max_length: Optional maximum length for the key.

        Returns:
            Actual storage key used.

        Raises:
            SuspiciousFileOperation: If the key is outside the blob prefix.
        """
        self._check_blob_name(name)
        try:
            logger.info('Uploading blob to storage: %s', name)
            saved_name = super().save(name, content, max_length)
            logger.info('Uploaded blob: %s', saved_name)
        except Exception:
            logger.exception('Failed to upload blob to storage: %s', name)
            raise
        else:
            return saved_name

    @override
    def delete(self, name: str) -> None:
        """Delete blob from S3 with logging.

        Args:
            name: Storage key of blob to delete.

        Raises:
            SuspiciousFileOperation: If the key is outside the blob prefix.
        """
        self._check_blob_name(name)
        try:
            logger.info('Deleting blob from storage: %s', name)
            super().delete(name)
            logger.info('Deleted blob: %s', name)
        except Exception:
            logger.exception('Failed to delete blob from storage: %s', name)
            raise

    def rollback_upload(self, name: str) -> None:
        """Delete a blob whose File record was never written.

        Failures are logged, not raised: the caller is already handling
        the record failure, and the blob is left orphaned.

        Args:
            name: Storage key of blob to delete.
        """
        try:
            logger.warning('Rolling back upload, deleting blob: %s', name)
            self.delete(name)
        except Exception:
            logger.exception(
                'Failed to rollback upload, orphaned blob: %s',
                name,
            )

    def _check_blob_name(self, name: str) -> None:
        if not self.is_blob_name(name):
            raise SuspiciousFileOperation(
                f'Key {name} is outside the blob prefix {self.blob_prefix}',
            )
