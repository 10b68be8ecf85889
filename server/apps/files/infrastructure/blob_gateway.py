"""Gateway between the drive logic and the blob store."""

import logging
from typing import TYPE_CHECKING, final

from django.core.files.storage import default_storage

from server.apps.files.exceptions import (
    BlobDeleteFailedError,
    BlobReadFailedError,
    BlobWriteFailedError,
    NotFoundError,
)

if TYPE_CHECKING:
    from server.apps.files.infrastructure.storage import FileStorage

logger = logging.getLogger(__name__)


@final
class BlobGateway:
    """Stores raw bytes under opaque storage ids.

    Storage failures are translated into drive errors here, so the
    logic layer never sees botocore or storage exceptions.
    """

    def __init__(self, storage: 'FileStorage | None' = None) -> None:
        """Initialize the gateway.

        Args:
            storage: Storage backend, defaults to Django's default storage.
        """
        self._storage = storage or default_storage

    def put(self, content: bytes) -> str:
        """Write content to a fresh key.

        Args:
            content: Raw bytes to store.

        Returns:
            Storage id of the written blob.

        Raises:
            BlobWriteFailedError: If the storage rejects the write.
        """
        try:
            return self._storage.save_blob(content)
        except Exception as exc:
            raise BlobWriteFailedError from exc

    def get(self, storage_id: str) -> bytes:
        """Read the content of a blob.

        Args:
            storage_id: Storage id returned by ``put``.

        Returns:
            Blob content.

        Raises:
            NotFoundError: If the blob no longer exists.
            BlobReadFailedError: If the storage fails to return it.
        """
        try:
            exists = self._storage.exists(storage_id)
        except Exception as exc:
            logger.exception('Failed to look up blob: %s', storage_id)
            raise BlobReadFailedError from exc

        if not exists:
            logger.warning('Blob missing from storage: %s', storage_id)
            raise NotFoundError('File content not found')

        try:
            with self._storage.open(storage_id, 'rb') as blob:
                return blob.read()
        except Exception as exc:
            logger.exception('Failed to read blob: %s', storage_id)
            raise BlobReadFailedError from exc

    def delete(self, storage_id: str) -> None:
        """Delete a blob, treating an already missing one as deleted.

        Args:
            storage_id: Storage id returned by ``put``.

        Raises:
            BlobDeleteFailedError: If the storage fails to delete it.
        """
        try:
            if not self._storage.exists(storage_id):
                logger.warning(
                    'Blob not found in storage (already deleted?): %s',
                    storage_id,
                )
                return
            self._storage.delete(storage_id)
        except Exception as exc:
            raise BlobDeleteFailedError from exc

    def rollback(self, storage_id: str) -> None:
        """Best-effort removal of a blob whose record was never written.

        Args:
            storage_id: Storage id returned by ``put``.
        """
        self._storage.rollback_upload(storage_id)
