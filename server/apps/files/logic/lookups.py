"""Loading files and folders by id."""

import uuid

from server.apps.files.exceptions import InvalidArgumentError, NotFoundError
from server.apps.files.models import File, Folder, ResourceType

Resource = File | Folder


def parse_id(raw_id: uuid.UUID | str | None, label: str = 'resource') -> uuid.UUID:
    """Parse an opaque id.

    Args:
        raw_id: UUID instance or its string form.
        label: Subject used in error messages.

    Returns:
        Parsed UUID.

    Raises:
        InvalidArgumentError: If the id is missing or malformed.
    """
    if isinstance(raw_id, uuid.UUID):
        return raw_id
    if not raw_id:
        raise InvalidArgumentError(f'{label.capitalize()} id is required')
    try:
        return uuid.UUID(str(raw_id))
    except ValueError as exc:
        raise InvalidArgumentError(f'Invalid {label} id: {raw_id}') from exc


def load_folder(folder_id: uuid.UUID | str) -> Folder:
    """Fetch a folder without any access check.

    Raises:
        NotFoundError: If no folder has this id.
    """
    try:
        return Folder.objects.get(pk=parse_id(folder_id, 'folder'))
    except Folder.DoesNotExist as exc:
        raise NotFoundError('Folder not found') from exc


def load_file(file_id: uuid.UUID | str) -> File:
    """Fetch a file without any access check.

    Raises:
        NotFoundError: If no file has this id.
    """
    try:
        return File.objects.get(pk=parse_id(file_id, 'file'))
    except File.DoesNotExist as exc:
        raise NotFoundError('File not found') from exc


def load_resource(
    resource_id: uuid.UUID | str,
    resource_type: str | None = None,
) -> Resource:
    """Fetch a file or folder without any access check.

    Ids are UUIDs, so when no type is given both tables are probed.

    Args:
        resource_id: Id of the file or folder.
        resource_type: ``file``, ``folder`` or None to probe both.

    Returns:
        The File or Folder.

    Raises:
        InvalidArgumentError: If the type is unknown.
        NotFoundError: If nothing has this id.
    """
    if resource_type == ResourceType.FILE:
        return load_file(resource_id)
    if resource_type == ResourceType.FOLDER:
        return load_folder(resource_id)
    if resource_type is not None:
        raise InvalidArgumentError(f'Unknown resource type: {resource_type}')

    parsed_id = parse_id(resource_id)
    resource = (
        File.objects.filter(pk=parsed_id).first()
        or Folder.objects.filter(pk=parsed_id).first()
    )
    if resource is None:
        raise NotFoundError
    return resource
