"""JSON endpoints of the drive.

Every response uses the same envelope: ``{"success": true, "data": ...}``
on success and ``{"success": false, "error": "..."}`` on failure.
Callers authenticate with ``Authorization: Bearer <session token>``.
"""

import functools
import json
import logging
import uuid
from collections.abc import Callable
from typing import Any, Final

from django.contrib.auth import authenticate, get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ObjectDoesNotExist, ValidationError
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.utils.dateparse import parse_datetime
from django.utils.http import content_disposition_header
from django.views.decorators.csrf import csrf_exempt

from server.apps.api import dependencies, serializers
from server.apps.files.exceptions import (
    DriveError,
    InvalidArgumentError,
    UnauthenticatedError,
)
from server.apps.files.logic import search as search_logic
from server.apps.files.logic.sharing import UNSET
from server.apps.files.models import File
from server.apps.identity.logic import session_manager

logger = logging.getLogger(__name__)

_AUTHORIZATION: Final = 'HTTP_AUTHORIZATION'
_BEARER_PREFIX: Final = 'Bearer '

ViewFunc = Callable[..., HttpResponse]


def success(data: Any = None, status: int = 200) -> JsonResponse:
    """Wrap data in the success envelope."""
    return JsonResponse({'success': True, 'data': data}, status=status)


def failure(message: str, status: int) -> JsonResponse:
    """Wrap an error message in the failure envelope."""
    return JsonResponse({'success': False, 'error': message}, status=status)


def api_view(
    *methods: str,
    authenticated: bool = True,
) -> Callable[[ViewFunc], ViewFunc]:
    """Turn a function into a JSON endpoint.

    Rejects other HTTP methods, resolves the caller when required and
    maps drive errors to their status codes. Authenticated views get
    the caller's user id as their second argument.

    Args:
        methods: Allowed HTTP methods.
        authenticated: Whether a bearer token is required.

    Returns:
        View decorator.
    """
    allowed = frozenset(methods)

    def decorator(view: ViewFunc) -> ViewFunc:
        @csrf_exempt
        @functools.wraps(view)
        def wrapper(request: HttpRequest, *args: Any, **kwargs: Any) -> HttpResponse:
            if request.method not in allowed:
                response = failure('Method not allowed', 405)
                response['Allow'] = ', '.join(sorted(allowed))
                return response

            try:
                if authenticated:
                    user_id = dependencies.identity_gate().resolve_header(
                        request.META.get(_AUTHORIZATION),
                    )
                    return view(request, user_id, *args, **kwargs)
                return view(request, *args, **kwargs)
            except DriveError as exc:
                if exc.status_code >= 500:
                    logger.exception('Drive error in %s', view.__name__)
                return failure(exc.message, exc.status_code)
            except Exception:
                logger.exception('Unhandled error in %s', view.__name__)
                return failure('Internal server error', 500)

        return wrapper

    return decorator


def _json_body(request: HttpRequest) -> dict[str, Any]:
    if not request.body:
        return {}
    try:
        body = json.loads(request.body)
    except (ValueError, UnicodeDecodeError) as exc:
        raise InvalidArgumentError('Request body must be valid JSON') from exc
    if not isinstance(body, dict):
        raise InvalidArgumentError('Request body must be a JSON object')
    return body


def _int_param(
    raw_value: object,
    name: str,
    default: int | None = None,
) -> int | None:
    if raw_value is None or raw_value == '':
        return default
    if isinstance(raw_value, bool):
        raise InvalidArgumentError(f'{name} must be an integer')
    try:
        return int(raw_value)  # type: ignore[call-overload]
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(f'{name} must be an integer') from exc


def _page(request: HttpRequest) -> tuple[int | None, int]:
    config = dependencies.activity_log(request).config
    limit = _int_param(
        request.GET.get('limit'),
        'limit',
        config.default_page_size,
    )
    offset = _int_param(request.GET.get('offset'), 'offset', 0)
    return limit, offset or 0


def _datetime_param(raw_value: object, name: str) -> Any:
    if raw_value is None or raw_value == '':
        return None
    try:
        parsed = parse_datetime(str(raw_value))
    except ValueError as exc:
        # Well formed but impossible dates, e.g. February 30th
        raise InvalidArgumentError(
            f'{name} must be an ISO 8601 datetime',
        ) from exc
    if parsed is None:
        raise InvalidArgumentError(f'{name} must be an ISO 8601 datetime')
    return parsed


def _bool_param(raw_value: object, name: str, default: bool | None) -> bool | None:
    if raw_value is None:
        return default
    if not isinstance(raw_value, bool):
        raise InvalidArgumentError(f'{name} must be a boolean')
    return raw_value


def _string_list(raw_value: object, name: str) -> list[str] | None:
    if raw_value is None:
        return None
    if not isinstance(raw_value, list) or not all(
        isinstance(item, str) for item in raw_value
    ):
        raise InvalidArgumentError(f'{name} must be a list of strings')
    return raw_value


def _bearer_token(request: HttpRequest) -> str:
    header = request.META.get(_AUTHORIZATION, '')
    return header.removeprefix(_BEARER_PREFIX).strip()


@api_view('GET', authenticated=False)
def health(request: HttpRequest) -> HttpResponse:
    """Liveness probe."""
    return success({'status': 'ok'})


@api_view('POST', authenticated=False)
def login(request: HttpRequest) -> HttpResponse:
    """Exchange credentials for a session token."""
    body = _json_body(request)
    username = body.get('username') or body.get('email')
    password = body.get('password')
    if not username or not password:
        raise InvalidArgumentError('Username and password are required')

    user = authenticate(request, username=username, password=password)
    if user is None or not user.is_active:
        logger.warning('Login failed for user: %s', username)
        raise UnauthenticatedError('Invalid credentials')

    logger.info('User logged in: %s', user.pk)
    return success(_start_session(request, user))


@api_view('POST', authenticated=False)
def register(request: HttpRequest) -> HttpResponse:
    """Create an account and log it in."""
    body = _json_body(request)
    email = body.get('email')
    password = body.get('password')
    username = body.get('username') or email
    if not email or not password or not username:
        raise InvalidArgumentError('Email and password are required')
    if not all(isinstance(value, str) for value in (email, password, username)):
        raise InvalidArgumentError('Email, username and password must be strings')

    user_model = get_user_model()
    if user_model.objects.filter(username=username).exists():
        raise InvalidArgumentError('Username is already taken')

    user = user_model(username=username, email=email)
    try:
        validate_password(password, user)
    except ValidationError as exc:
        raise InvalidArgumentError(' '.join(exc.messages)) from exc

    user = user_model.objects.create_user(
        username=username,
        email=email,
        password=password,
        first_name=str(body.get('name') or '')[:150],
    )
    logger.info('User registered: %s', user.pk)
    return success(_start_session(request, user), status=201)


@api_view('GET')
def me(request: HttpRequest, user_id: int) -> HttpResponse:
    """Return the account the bearer token belongs to."""
    try:
        user = get_user_model().objects.get(pk=user_id)
    except ObjectDoesNotExist as exc:
        raise UnauthenticatedError from exc
    return success(serializers.serialize_user(user))


def _start_session(request: HttpRequest, user: Any) -> dict[str, Any]:
    session = session_manager.create_session(
        user,
        dependencies.client_ip(request),
        dependencies.user_agent(request),
    )
    return {
        'token': session.session_id,
        'expires_in': session_manager.get_session_timeout(),
        'user': serializers.serialize_user(user),
    }


@api_view('POST')
def logout(request: HttpRequest, user_id: int) -> HttpResponse:
    """End the caller's session."""
    session_manager.end_session(_bearer_token(request))
    logger.info('User logged out: %s', user_id)
    return success({'message': 'Logged out successfully'})


@api_view('GET', 'POST')
def folders(request: HttpRequest, user_id: int) -> HttpResponse:
    """List folders inside a parent, or create one."""
    store = dependencies.hierarchy_store(request)

    if request.method == 'POST':
        body = _json_body(request)
        folder = store.create_folder(
            user_id,
            body.get('name', ''),
            body.get('parent_id') or None,
        )
        return success(serializers.serialize_folder(folder), status=201)

    limit, offset = _page(request)
    listed = store.list_folders(
        user_id,
        request.GET.get('parent_id') or None,
        limit,
        offset,
    )
    return success([serializers.serialize_folder(folder) for folder in listed])


@api_view('GET', 'DELETE')
def folder_detail(
    request: HttpRequest,
    user_id: int,
    folder_id: uuid.UUID,
) -> HttpResponse:
    """Get or delete a folder."""
    store = dependencies.hierarchy_store(request)

    if request.method == 'DELETE':
        store.delete(user_id, folder_id, 'folder')
        return success({'message': 'Folder deleted successfully'})

    folder = store.get_folder(user_id, folder_id)
    return success(serializers.serialize_folder(folder))


@api_view('PATCH')
def folder_rename(
    request: HttpRequest,
    user_id: int,
    folder_id: uuid.UUID,
) -> HttpResponse:
    """Rename a folder."""
    body = _json_body(request)
    folder = dependencies.hierarchy_store(request).rename(
        user_id,
        folder_id,
        body.get('name', ''),
        'folder',
    )
    return success(serializers.serialize_folder(folder))


@api_view('GET')
def folder_path(
    request: HttpRequest,
    user_id: int,
    folder_id: uuid.UUID,
) -> HttpResponse:
    """Breadcrumb trail of a folder."""
    breadcrumbs = dependencies.hierarchy_store(request).get_path(
        user_id,
        folder_id,
    )
    return success([
        serializers.serialize_breadcrumb(breadcrumb)
        for breadcrumb in breadcrumbs
    ])


@api_view('GET')
def files(request: HttpRequest, user_id: int) -> HttpResponse:
    """List files inside a folder."""
    limit, offset = _page(request)
    listed = dependencies.hierarchy_store(request).list_files(
        user_id,
        request.GET.get('folder_id') or None,
        limit,
        offset,
    )
    return success([serializers.serialize_file(item) for item in listed])


@api_view('POST')
def file_upload(request: HttpRequest, user_id: int) -> HttpResponse:
    """Upload a file from a multipart form."""
    uploaded = request.FILES.get('file')
    if uploaded is None:
        raise InvalidArgumentError('No file provided')

    file_instance = dependencies.hierarchy_store(request).create_file(
        user_id,
        request.POST.get('name') or uploaded.name or '',
        uploaded.size,
        request.POST.get('mime_type') or None,
        uploaded.read(),
        request.POST.get('folder_id') or None,
    )
    return success(serializers.serialize_file(file_instance), status=201)


@api_view('GET', 'DELETE')
def file_detail(
    request: HttpRequest,
    user_id: int,
    file_id: uuid.UUID,
) -> HttpResponse:
    """Get or delete a file."""
    store = dependencies.hierarchy_store(request)

    if request.method == 'DELETE':
        store.delete(user_id, file_id, 'file')
        return success({'message': 'File deleted successfully'})

    return success(serializers.serialize_file(store.get_file(user_id, file_id)))


@api_view('PATCH')
def file_rename(
    request: HttpRequest,
    user_id: int,
    file_id: uuid.UUID,
) -> HttpResponse:
    """Rename a file."""
    body = _json_body(request)
    file_instance = dependencies.hierarchy_store(request).rename(
        user_id,
        file_id,
        body.get('name', ''),
        'file',
    )
    return success(serializers.serialize_file(file_instance))


@api_view('PATCH')
def file_move(
    request: HttpRequest,
    user_id: int,
    file_id: uuid.UUID,
) -> HttpResponse:
    """Move a file into another folder, or to the root."""
    body = _json_body(request)
    file_instance = dependencies.hierarchy_store(request).move_file(
        user_id,
        file_id,
        body.get('folder_id') or None,
    )
    return success(serializers.serialize_file(file_instance))


@api_view('PUT')
def file_tags(
    request: HttpRequest,
    user_id: int,
    file_id: uuid.UUID,
) -> HttpResponse:
    """Replace the tags of a file."""
    body = _json_body(request)
    tags = _string_list(body.get('tags', []), 'tags') or []
    file_instance = dependencies.hierarchy_store(request).set_tags(
        user_id,
        file_id,
        tags,
    )
    return success(serializers.serialize_file(file_instance))


def _attachment(file_instance: File, content: bytes) -> HttpResponse:
    response = HttpResponse(content, content_type=file_instance.mime_type)
    response['Content-Disposition'] = content_disposition_header(
        as_attachment=True,
        filename=file_instance.name,
    )
    response['Content-Length'] = str(len(content))
    return response


@api_view('GET')
def file_download(
    request: HttpRequest,
    user_id: int,
    file_id: uuid.UUID,
) -> HttpResponse:
    """Download the content of a file."""
    file_instance, content = dependencies.hierarchy_store(request).download(
        user_id,
        file_id,
    )
    return _attachment(file_instance, content)


@api_view('GET', 'POST')
def shares(request: HttpRequest, user_id: int) -> HttpResponse:
    """List the caller's shares, or create one."""
    manager = dependencies.share_manager(request)

    if request.method == 'POST':
        body = _json_body(request)
        share = manager.create_share(
            user_id,
            body.get('resource_id', ''),
            body.get('resource_type') or None,
            permissions=_string_list(body.get('permissions', ['read']), 'permissions'),
            expires_at=_datetime_param(body.get('expires_at'), 'expires_at'),
            is_public=_bool_param(body.get('is_public'), 'is_public', True),
            shared_with_email=body.get('shared_with_email') or None,
        )
        return success(
            serializers.serialize_share(share, manager.share_url(share)),
            status=201,
        )

    limit, offset = _page(request)
    return success([
        serializers.serialize_share(share, manager.share_url(share), resource)
        for share, resource in manager.list_shares(user_id, limit, offset)
    ])


@api_view('GET', authenticated=False)
def shared_resource(request: HttpRequest, token: str) -> HttpResponse:
    """Resolve a share link without authentication."""
    manager = dependencies.share_manager(request)
    share, resource = manager.resolve_share(token)
    return success({
        'share': serializers.serialize_share(share, manager.share_url(share)),
        'resource': serializers.serialize_resource(resource),
    })


@api_view('GET', authenticated=False)
def shared_download(request: HttpRequest, token: str) -> HttpResponse:
    """Download a shared file without authentication."""
    _, file_instance, content = dependencies.share_manager(
        request,
    ).download_shared(token)
    return _attachment(file_instance, content)


@api_view('PATCH', 'DELETE')
def share_manage(
    request: HttpRequest,
    user_id: int,
    share_id: uuid.UUID,
) -> HttpResponse:
    """Partially update or revoke a share."""
    manager = dependencies.share_manager(request)

    if request.method == 'DELETE':
        manager.revoke_share(user_id, share_id)
        return success({'message': 'Share revoked successfully'})

    body = _json_body(request)
    expires_at = UNSET
    if 'expires_at' in body:
        expires_at = _datetime_param(body['expires_at'], 'expires_at')
    share = manager.update_share(
        user_id,
        share_id,
        permissions=_string_list(body.get('permissions'), 'permissions'),
        expires_at=expires_at,
        is_public=_bool_param(body.get('is_public'), 'is_public', None),
    )
    return success(serializers.serialize_share(share, manager.share_url(share)))


@api_view('GET')
def search(request: HttpRequest, user_id: int) -> HttpResponse:
    """Search files and folders by name."""
    results = search_logic.search(
        user_id,
        request.GET.get('q', ''),
        request.GET.get('type') or None,
        _int_param(
            request.GET.get('limit'),
            'limit',
            search_logic.SEARCH_DEFAULT_LIMIT,
        ),
    )
    return success({
        'files': [serializers.serialize_file(item) for item in results.files],
        'folders': [
            serializers.serialize_folder(folder) for folder in results.folders
        ],
    })


@api_view('POST')
def advanced_search(request: HttpRequest, user_id: int) -> HttpResponse:
    """Search files with metadata filters."""
    body = _json_body(request)
    results = search_logic.advanced_search(
        user_id,
        query=body.get('query') or None,
        mime_types=_string_list(body.get('file_types'), 'file_types'),
        size_min=_int_param(body.get('size_min'), 'size_min'),
        size_max=_int_param(body.get('size_max'), 'size_max'),
        date_from=_datetime_param(body.get('date_from'), 'date_from'),
        date_to=_datetime_param(body.get('date_to'), 'date_to'),
        folder_id=body.get('folder_id') or None,
        tags=_string_list(body.get('tags'), 'tags'),
        limit=_int_param(
            body.get('limit'),
            'limit',
            search_logic.SEARCH_DEFAULT_LIMIT,
        ),
    )
    return success({
        'files': [serializers.serialize_file(item) for item in results.files],
        'total': results.total,
    })


@api_view('GET')
def recent(request: HttpRequest, user_id: int) -> HttpResponse:
    """Most recently uploaded files."""
    recent_files = search_logic.recent_files(
        user_id,
        _int_param(
            request.GET.get('limit'),
            'limit',
            search_logic.RECENT_DEFAULT_LIMIT,
        ),
    )
    return success([serializers.serialize_file(item) for item in recent_files])


@api_view('GET')
def activity(request: HttpRequest, user_id: int) -> HttpResponse:
    """The caller's activity, newest first."""
    limit, offset = _page(request)
    records = dependencies.activity_log(request).list_activities(
        user_id,
        limit,
        offset,
    )
    return success([serializers.serialize_activity(record) for record in records])
