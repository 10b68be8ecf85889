"""Conversion of drive records into JSON-ready dictionaries."""

import datetime as dt
from typing import Any

from server.apps.activity.models import ActivityRecord
from server.apps.files.logic.hierarchy import Breadcrumb
from server.apps.files.logic.lookups import Resource
from server.apps.files.models import File, Folder, Share

JSONDict = dict[str, Any]


def _timestamp(value: dt.datetime | None) -> str | None:
    return value.isoformat() if value else None


def _optional_id(value: object) -> str | None:
    return str(value) if value else None


def _share_state(resource: File | Folder) -> JSONDict:
    share = resource.active_share
    return {
        'is_shared': share is not None,
        'share_token': share.token if share else None,
        'share_expiry': _timestamp(share.expires_at) if share else None,
    }


def serialize_folder(folder: Folder) -> JSONDict:
    """Folder with its derived share state."""
    return {
        'id': str(folder.id),
        'type': folder.resource_type,
        'name': folder.name,
        'parent_id': _optional_id(folder.parent_id),
        'path': folder.path,
        'created_at': _timestamp(folder.created_at),
        'updated_at': _timestamp(folder.updated_at),
        **_share_state(folder),
    }


def serialize_file(file_instance: File) -> JSONDict:
    """File metadata with its tags and derived share state."""
    return {
        'id': str(file_instance.id),
        'type': file_instance.resource_type,
        'name': file_instance.name,
        'original_name': file_instance.original_name,
        'size': file_instance.size,
        'mime_type': file_instance.mime_type,
        'folder_id': _optional_id(file_instance.folder_id),
        'path': file_instance.path,
        'tags': file_instance.tag_names,
        'created_at': _timestamp(file_instance.created_at),
        'updated_at': _timestamp(file_instance.updated_at),
        **_share_state(file_instance),
    }


def serialize_resource(resource: Resource | None) -> JSONDict | None:
    """File or folder, whichever it is."""
    if resource is None:
        return None
    if isinstance(resource, File):
        return serialize_file(resource)
    return serialize_folder(resource)


def serialize_share(
    share: Share,
    url: str,
    resource: Resource | None = None,
) -> JSONDict:
    """Share with its public link and, optionally, its resource."""
    payload: JSONDict = {
        'id': str(share.id),
        'resource_id': str(share.resource_id),
        'resource_type': share.resource_type,
        'shared_with_email': share.shared_with_email,
        'permissions': share.permissions,
        'token': share.token,
        'url': url,
        'expires_at': _timestamp(share.expires_at),
        'is_public': share.is_public,
        'is_expired': share.is_expired(),
        'created_at': _timestamp(share.created_at),
    }
    if resource is not None:
        payload['resource'] = serialize_resource(resource)
    return payload


def serialize_breadcrumb(breadcrumb: Breadcrumb) -> JSONDict:
    """One step of a folder path."""
    return {
        'id': _optional_id(breadcrumb.id),
        'name': breadcrumb.name,
        'path': breadcrumb.path,
    }


def serialize_activity(record: ActivityRecord) -> JSONDict:
    """Audit record as shown to its user."""
    return {
        'id': str(record.id),
        'action': record.action,
        'target_id': record.target_id,
        'target_name': record.target_name,
        'target_type': record.target_type,
        'details': record.details,
        'ip_address': record.ip_address,
        'user_agent': record.user_agent,
        'created_at': _timestamp(record.created_at),
    }


def serialize_user(user: Any) -> JSONDict:
    """Public account details."""
    return {
        'id': user.pk,
        'username': user.get_username(),
        'email': getattr(user, 'email', ''),
        'name': user.get_full_name(),
        'created_at': _timestamp(getattr(user, 'date_joined', None)),
    }
