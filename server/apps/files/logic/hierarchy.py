"""Business logic for the folder hierarchy and the files in it.

Ordering against the blob store is chosen to fail safe:

- Upload writes the blob before the record, so a crash leaves an
  orphaned blob, never a record pointing at nothing.
- Delete removes the blob before the record, so a crash leaves a
  record whose blob is gone; downloads report it as not found.

Paths are materialized once, when a resource is created (or a file is
moved). Renaming a folder does not rewrite the paths below it.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Final, final

from django.db import transaction
from django.utils import timezone

from server.apps.activity.logic.activity_log import ActivityLog
from server.apps.activity.models import ActivityAction
from server.apps.files.config import DriveConfig
from server.apps.files.exceptions import (
    DriveError,
    InvalidArgumentError,
    NotFoundError,
)
from server.apps.files.infrastructure.blob_gateway import BlobGateway
from server.apps.files.infrastructure.metadata import (
    detect_mime_type,
    validate_name,
)
from server.apps.files.logic.authorization import authorize, is_owner
from server.apps.files.logic.lookups import (
    Resource,
    load_file,
    load_folder,
    load_resource,
    parse_id,
)
from server.apps.files.logic.pagination import paginate
from server.apps.files.models import (
    ROOT_PATH,
    File,
    Folder,
    ResourceType,
    Tag,
)

logger = logging.getLogger(__name__)

_HOME_NAME: Final = 'Home'
_TAG_MAX_LENGTH: Final = 100


@final
@dataclass(frozen=True, slots=True)
class Breadcrumb:
    """One step of a folder's ancestry."""

    id: uuid.UUID | None
    name: str
    path: str


HOME: Final = Breadcrumb(id=None, name=_HOME_NAME, path=ROOT_PATH)


@final
class HierarchyStore:
    """Owns folders and files and enforces ownership on all of them."""

    def __init__(
        self,
        blobs: BlobGateway | None = None,
        activity: ActivityLog | None = None,
        config: DriveConfig | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            blobs: Blob gateway for file content.
            activity: Activity log every mutation is recorded in.
            config: Drive configuration, read from settings if omitted.
        """
        self._config = config or DriveConfig.from_settings()
        self._blobs = blobs or BlobGateway()
        self._activity = activity or ActivityLog(self._config)

    def get_folder(self, user_id: int, folder_id: uuid.UUID | str) -> Folder:
        """Get a folder owned by the caller.

        Raises:
            NotFoundError: If the folder does not exist.
            ForbiddenError: If the caller does not own it.
        """
        folder = load_folder(folder_id)
        authorize(user_id, folder)
        return folder

    def get_file(self, user_id: int, file_id: uuid.UUID | str) -> File:
        """Get a file owned by the caller.

        Raises:
            NotFoundError: If the file does not exist.
            ForbiddenError: If the caller does not own it.
        """
        file_instance = load_file(file_id)
        authorize(user_id, file_instance)
        return file_instance

    def list_folders(
        self,
        user_id: int,
        parent_id: uuid.UUID | str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Folder]:
        """List the caller's folders directly inside a parent.

        Args:
            user_id: Caller.
            parent_id: Parent folder, None for root-level folders.
            limit: Maximum number of folders, None for all.
            offset: Number of folders to skip.

        Returns:
            Folders, newest first.
        """
        queryset = Folder.objects.filter(
            owner_id=user_id,
            parent_id=_optional_id(parent_id, 'folder'),
        ).order_by('-created_at')
        return paginate(queryset, limit, offset)

    def list_files(
        self,
        user_id: int,
        folder_id: uuid.UUID | str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[File]:
        """List the caller's files directly inside a folder.

        Args:
            user_id: Caller.
            folder_id: Folder, None for root-level files.
            limit: Maximum number of files, None for all.
            offset: Number of files to skip.

        Returns:
            Files, newest first.
        """
        queryset = File.objects.filter(
            owner_id=user_id,
            folder_id=_optional_id(folder_id, 'folder'),
        ).order_by('-created_at').prefetch_related('tags')
        return paginate(queryset, limit, offset)

    def create_folder(
        self,
        user_id: int,
        name: str,
        parent_id: uuid.UUID | str | None = None,
    ) -> Folder:
        """Create a folder at the root or inside a parent.

        Args:
            user_id: Caller, becomes the owner.
            name: Folder name.
            parent_id: Parent folder, None for a root-level folder.

        Returns:
            Created Folder.

        Raises:
            InvalidArgumentError: If the name is empty or invalid.
            NotFoundError: If the parent does not exist.
            ForbiddenError: If the caller does not own the parent.
        """
        validate_name(name, 'Folder name')
        parent = self._destination(user_id, parent_id)

        folder = Folder.objects.create(
            owner_id=user_id,
            name=name,
            parent=parent,
            path=parent.full_path if parent else ROOT_PATH,
        )
        logger.info(
            'Folder created: %s%s (ID: %s)',
            folder.path,
            folder.name,
            folder.id,
        )

        self._activity.record(
            user_id,
            ActivityAction.CREATE_FOLDER,
            folder.id,
            folder.name,
            ResourceType.FOLDER,
        )
        return folder

    def create_file(  # noqa: WPS211
        self,
        user_id: int,
        name: str,
        size: int | None,
        mime_type: str | None,
        content: bytes,
        folder_id: uuid.UUID | str | None = None,
    ) -> File:
        """Upload a file: blob first, then the record.

        Args:
            user_id: Caller, becomes the owner.
            name: File name.
            size: Declared size in bytes, None to take it from content.
            mime_type: MIME type, detected from the name when empty.
            content: File content.
            folder_id: Destination folder, None for the root.

        Returns:
            Created File.

        Raises:
            InvalidArgumentError: If name or size is invalid.
            NotFoundError: If the folder does not exist.
            ForbiddenError: If the caller does not own the folder.
            BlobWriteFailedError: If the blob store rejects the content.
        """
        validate_name(name, 'File name')
        size = self._validate_size(size, content)
        folder = self._destination(user_id, folder_id)

        # Step 1: Write content to the blob store
        storage_id = self._blobs.put(content)

        # Step 2: Create database record
        try:
            with transaction.atomic():
                file_instance = File.objects.create(
                    owner_id=user_id,
                    name=name,
                    original_name=name,
                    size=size,
                    mime_type=mime_type or detect_mime_type(name),
                    storage_id=storage_id,
                    folder=folder,
                    path=folder.full_path if folder else ROOT_PATH,
                )
        except Exception:
            logger.exception('Database creation failed, rolling back blob')
            self._blobs.rollback(storage_id)
            raise

        logger.info(
            'File uploaded: %s%s (ID: %s, size: %d)',
            file_instance.path,
            file_instance.name,
            file_instance.id,
            size,
        )

        self._activity.record(
            user_id,
            ActivityAction.UPLOAD,
            file_instance.id,
            file_instance.name,
            ResourceType.FILE,
        )
        return file_instance

    def rename(
        self,
        user_id: int,
        resource_id: uuid.UUID | str,
        new_name: str,
        resource_type: str | None = None,
    ) -> Resource:
        """Rename a file or folder.

        Only the name changes. Paths stored on descendants keep the
        old name.

        Args:
            user_id: Caller.
            resource_id: File or folder id.
            new_name: New name.
            resource_type: ``file``, ``folder`` or None to detect.

        Returns:
            Renamed File or Folder.

        Raises:
            InvalidArgumentError: If the new name is empty or invalid.
            NotFoundError: If the resource does not exist (or vanished).
            ForbiddenError: If the caller does not own it.
        """
        validate_name(new_name, 'New name')
        resource = load_resource(resource_id, resource_type)
        authorize(user_id, resource)

        old_name = resource.name
        now = timezone.now()
        updated = type(resource).objects.filter(pk=resource.pk).update(
            name=new_name,
            updated_at=now,
        )
        if not updated:
            # Deleted between the lookup and the update
            raise NotFoundError
        resource.name = new_name
        resource.updated_at = now

        logger.info(
            'Renamed %s %s: %s -> %s',
            resource.resource_type,
            resource.id,
            old_name,
            new_name,
        )

        action = (
            ActivityAction.RENAME
            if resource.resource_type == ResourceType.FILE
            else ActivityAction.RENAME_FOLDER
        )
        self._activity.record(
            user_id,
            action,
            resource.id,
            f'{old_name} → {new_name}',
            resource.resource_type,
        )
        return resource

    def move_file(
        self,
        user_id: int,
        file_id: uuid.UUID | str,
        folder_id: uuid.UUID | str | None = None,
    ) -> File:
        """Move a file into another folder of the caller.

        The file's own path is materialized again from the destination.

        Args:
            user_id: Caller.
            file_id: File to move.
            folder_id: Destination folder, None for the root.

        Returns:
            Moved File.

        Raises:
            NotFoundError: If the file or destination does not exist.
            ForbiddenError: If the caller owns neither of them.
        """
        file_instance = self.get_file(user_id, file_id)
        folder = self._destination(user_id, folder_id)

        old_path = file_instance.path
        new_path = folder.full_path if folder else ROOT_PATH
        now = timezone.now()
        updated = File.objects.filter(pk=file_instance.pk).update(
            folder=folder,
            path=new_path,
            updated_at=now,
        )
        if not updated:
            raise NotFoundError('File not found')
        file_instance.folder = folder
        file_instance.path = new_path
        file_instance.updated_at = now

        logger.info(
            'Moved file %s: %s -> %s',
            file_instance.id,
            old_path,
            new_path,
        )

        self._activity.record(
            user_id,
            ActivityAction.MOVE,
            file_instance.id,
            file_instance.name,
            ResourceType.FILE,
            details=f'{old_path} → {new_path}',
        )
        return file_instance

    def set_tags(
        self,
        user_id: int,
        file_id: uuid.UUID | str,
        tags: list[str] | set[str] | tuple[str, ...],
    ) -> File:
        """Replace the tag set of a file.

        Tags are user-scoped and created on first use.

        Args:
            user_id: Caller.
            file_id: File to tag.
            tags: New tag names; blanks and duplicates are dropped.

        Returns:
            Tagged File.

        Raises:
            InvalidArgumentError: If a tag name is too long.
            NotFoundError: If the file does not exist.
            ForbiddenError: If the caller does not own it.
        """
        names = _normalize_tags(tags)
        file_instance = self.get_file(user_id, file_id)

        with transaction.atomic():
            tag_instances = [
                Tag.objects.get_or_create(user_id=user_id, name=name)[0]
                for name in names
            ]
            file_instance.tags.set(tag_instances)

        self._activity.record(
            user_id,
            ActivityAction.TAG,
            file_instance.id,
            file_instance.name,
            ResourceType.FILE,
            details=', '.join(names),
        )
        return file_instance

    def delete(
        self,
        user_id: int,
        resource_id: uuid.UUID | str,
        resource_type: str | None = None,
    ) -> None:
        """Delete a file, or a folder with everything inside it.

        Args:
            user_id: Caller.
            resource_id: File or folder id.
            resource_type: ``file``, ``folder`` or None to detect.

        Raises:
            NotFoundError: If the resource does not exist (or vanished).
            ForbiddenError: If the caller does not own it.
            BlobDeleteFailedError: If the blob store fails to delete.
        """
        resource = load_resource(resource_id, resource_type)
        authorize(user_id, resource)

        if isinstance(resource, File):
            self._delete_file(resource)
            self._activity.record(
                user_id,
                ActivityAction.DELETE,
                resource.id,
                resource.name,
                ResourceType.FILE,
            )
            return

        files_count, folders_count = self._delete_folder(user_id, resource)
        self._activity.record(
            user_id,
            ActivityAction.DELETE_FOLDER,
            resource.id,
            resource.name,
            ResourceType.FOLDER,
            details=(
                f'Removed {files_count} files and '
                f'{folders_count - 1} subfolders'
            ),
        )

    def get_path(
        self,
        user_id: int,
        folder_id: uuid.UUID | str,
    ) -> list[Breadcrumb]:
        """Build the breadcrumb trail of a folder.

        Walks parent links up to the root. The walk terminates because
        parents are fixed at creation and cannot form a cycle.

        Args:
            user_id: Caller.
            folder_id: Folder to start from.

        Returns:
            Home first, the requested folder last.

        Raises:
            NotFoundError: If a folder on the way does not exist.
            ForbiddenError: At the first folder the caller does not own.
        """
        breadcrumbs: list[Breadcrumb] = []
        current_id: uuid.UUID | str | None = folder_id

        while current_id is not None:
            folder = self.get_folder(user_id, current_id)
            breadcrumbs.append(
                Breadcrumb(id=folder.id, name=folder.name, path=folder.path),
            )
            current_id = folder.parent_id

        breadcrumbs.append(HOME)
        breadcrumbs.reverse()
        return breadcrumbs

    def download(
        self,
        user_id: int,
        file_id: uuid.UUID | str,
    ) -> tuple[File, bytes]:
        """Read a file's content.

        The owner may always download; anyone else only while the file
        has an active share.

        Args:
            user_id: Caller.
            file_id: File to download.

        Returns:
            The File and its content.

        Raises:
            NotFoundError: If the file or its blob does not exist.
            ForbiddenError: If the caller neither owns it nor is it shared.
            BlobReadFailedError: If the blob store fails to return it.
        """
        file_instance = load_file(file_id)
        if not is_owner(user_id, file_instance) and not file_instance.is_shared:
            authorize(user_id, file_instance)

        content = self._blobs.get(file_instance.storage_id)

        self._activity.record(
            user_id,
            ActivityAction.DOWNLOAD,
            file_instance.id,
            file_instance.name,
            ResourceType.FILE,
        )
        return file_instance, content

    def _destination(
        self,
        user_id: int,
        folder_id: uuid.UUID | str | None,
    ) -> Folder | None:
        if folder_id is None:
            return None
        return self.get_folder(user_id, folder_id)

    def _validate_size(self, size: int | None, content: bytes) -> int:
        actual = len(content)
        if size is None:
            return actual
        if size < 0:
            raise InvalidArgumentError('Size must not be negative')
        if size != actual:
            raise InvalidArgumentError(
                f'Declared size {size} does not match content ({actual} bytes)',
            )
        return size

    def _delete_file(self, file_instance: File) -> None:
        # Step 1: Delete content from the blob store
        self._blobs.delete(file_instance.storage_id)

        # Step 2: Delete database record (shares go with it, see signals)
        with transaction.atomic():
            deleted, _ = File.objects.filter(pk=file_instance.pk).delete()
        if not deleted:
            raise NotFoundError('File not found')

        logger.info(
            'File deleted: %s%s (ID: %s)',
            file_instance.path,
            file_instance.name,
            file_instance.id,
        )

    def _delete_folder(self, user_id: int, folder: Folder) -> tuple[int, int]:
        folder_ids = _collect_subtree(folder)
        files = list(File.objects.filter(folder_id__in=folder_ids))

        removed = 0
        try:
            for file_instance in files:
                self._delete_file(file_instance)
                removed += 1
        except DriveError:
            logger.exception(
                'Folder delete aborted: %s%s (ID: %s, %d of %d files removed)',
                folder.path,
                folder.name,
                folder.id,
                removed,
                len(files),
            )
            if removed:
                self._activity.record(
                    user_id,
                    ActivityAction.DELETE_FOLDER,
                    folder.id,
                    folder.name,
                    ResourceType.FOLDER,
                    details=(
                        f'Aborted after removing {removed} of '
                        f'{len(files)} files'
                    ),
                )
            raise

        # Subfolders follow through the parent foreign key cascade
        with transaction.atomic():
            deleted, _ = Folder.objects.filter(pk=folder.pk).delete()
        if not deleted:
            raise NotFoundError('Folder not found')

        logger.info(
            'Folder deleted: %s%s (ID: %s, %d files, %d folders)',
            folder.path,
            folder.name,
            folder.id,
            len(files),
            len(folder_ids),
        )
        return len(files), len(folder_ids)


def _optional_id(
    raw_id: uuid.UUID | str | None,
    label: str,
) -> uuid.UUID | None:
    if raw_id is None:
        return None
    return parse_id(raw_id, label)


def _collect_subtree(folder: Folder) -> list[uuid.UUID]:
    """Collect ids of a folder and all folders below it.

    Args:
        folder: Root of the subtree.

    Returns:
        Folder ids, breadth first, starting with the folder itself.
    """
    folder_ids = [folder.id]
    frontier = [folder.id]

    while frontier:
        frontier = list(
            Folder.objects.filter(
                parent_id__in=frontier,
            ).values_list('id', flat=True),
        )
        folder_ids.extend(frontier)

    return folder_ids


def _normalize_tags(tags: list[str] | set[str] | tuple[str, ...]) -> list[str]:
    """Strip, deduplicate and sort tag names.

    Raises:
        InvalidArgumentError: If a tag name is too long.
    """
    names = sorted({tag.strip() for tag in tags if tag and tag.strip()})
    for name in names:
        if len(name) > _TAG_MAX_LENGTH:
            raise InvalidArgumentError(
                f'Tag must be at most {_TAG_MAX_LENGTH} characters',
            )
    return names
