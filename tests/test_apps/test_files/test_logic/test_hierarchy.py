"""Tests for the folder hierarchy store."""

from datetime import timedelta

import pytest
from django.utils import timezone

from server.apps.activity.models import ActivityRecord
from server.apps.files.exceptions import (
    BlobDeleteFailedError,
    BlobWriteFailedError,
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
)
from server.apps.files.infrastructure.blob_gateway import BlobGateway
from server.apps.files.logic import hierarchy
from server.apps.files.logic.hierarchy import HOME, HierarchyStore
from server.apps.files.models import File, Folder, Share, Tag


class _BrokenStorage:
    """Storage rejecting every write."""

    def save_blob(self, content):
        raise OSError('bucket unavailable')


@pytest.mark.django_db
class TestCreateFolder:
    """Tests for folder creation and path materialization."""

    def test_root_folder_has_root_path(self, store, user):
        """Test root-level folder gets '/' path."""
        folder = store.create_folder(user.id, 'Docs')

        assert folder.path == '/'
        assert folder.parent is None
        assert folder.owner_id == user.id

    def test_nested_paths(self, store, user, upload):
        """Test paths are built from ancestor names."""
        docs = store.create_folder(user.id, 'Docs')
        year = store.create_folder(user.id, '2024', docs.id)
        file_instance = upload(user, 'report.pdf', b'%PDF', folder=year)

        assert year.path == '/Docs/'
        assert file_instance.path == '/Docs/2024/'

    @pytest.mark.parametrize('name', ['', '   ', 'a/b', 'x' * 256])
    def test_invalid_name(self, store, user, name):
        """Test invalid folder names are rejected."""
        with pytest.raises(InvalidArgumentError):
            store.create_folder(user.id, name)

        assert not Folder.objects.exists()

    def test_missing_parent(self, store, user):
        """Test unknown parent is reported as not found."""
        with pytest.raises(NotFoundError):
            store.create_folder(
                user.id,
                'Docs',
                '00000000-0000-0000-0000-000000000000',
            )

    def test_malformed_parent_id(self, store, user):
        """Test malformed parent id is an invalid argument."""
        with pytest.raises(InvalidArgumentError):
            store.create_folder(user.id, 'Docs', 'not-a-uuid')

    def test_foreign_parent(self, store, user, other_user):
        """Test creating inside another user's folder is forbidden."""
        foreign = store.create_folder(other_user.id, 'Theirs')

        with pytest.raises(ForbiddenError):
            store.create_folder(user.id, 'Mine', foreign.id)

    def test_records_activity(self, store, user):
        """Test folder creation is recorded with request metadata."""
        folder = store.create_folder(user.id, 'Docs')

        record = ActivityRecord.objects.get(user=user)
        assert record.action == 'create_folder'
        assert record.target_id == str(folder.id)
        assert record.target_type == 'folder'
        assert record.ip_address == '10.0.0.1'
        assert record.user_agent == 'pytest'

    def test_activity_store_down(self, store, user, monkeypatch):
        """Test the folder is created and kept when recording fails."""
        def _fail(**kwargs):
            raise RuntimeError('log store down')

        monkeypatch.setattr(ActivityRecord.objects, 'create', _fail)

        folder = store.create_folder(user.id, 'Docs')

        assert Folder.objects.filter(pk=folder.pk, name='Docs').exists()
        monkeypatch.undo()
        assert not ActivityRecord.objects.exists()


@pytest.mark.django_db
class TestCreateFile:
    """Tests for uploads."""

    def test_upload_writes_blob_and_record(self, store, user, blob_gateway):
        """Test upload stores content and metadata."""
        file_instance = store.create_file(
            user.id,
            'notes.txt',
            5,
            None,
            b'hello',
        )

        assert file_instance.size == 5
        assert file_instance.mime_type == 'text/plain'
        assert file_instance.original_name == 'notes.txt'
        assert file_instance.path == '/'
        assert blob_gateway.get(file_instance.storage_id) == b'hello'

    def test_explicit_mime_type_kept(self, store, user):
        """Test a given MIME type is not overridden."""
        file_instance = store.create_file(
            user.id,
            'data.bin',
            3,
            'application/x-custom',
            b'abc',
        )

        assert file_instance.mime_type == 'application/x-custom'

    def test_size_taken_from_content(self, store, user):
        """Test missing size is derived from content."""
        file_instance = store.create_file(user.id, 'a.txt', None, None, b'abcd')

        assert file_instance.size == 4

    def test_size_mismatch(self, store, user, bucket_keys):
        """Test declared size must match content."""
        with pytest.raises(InvalidArgumentError):
            store.create_file(user.id, 'a.txt', 10, None, b'abc')

        assert bucket_keys() == []

    def test_negative_size(self, store, user):
        """Test negative size is rejected."""
        with pytest.raises(InvalidArgumentError):
            store.create_file(user.id, 'a.txt', -1, None, b'')

    def test_foreign_folder_writes_nothing(
        self,
        store,
        user,
        other_user,
        bucket_keys,
    ):
        """Test upload into a foreign folder fails before the blob write."""
        foreign = store.create_folder(other_user.id, 'Theirs')

        with pytest.raises(ForbiddenError):
            store.create_file(user.id, 'a.txt', 3, None, b'abc', foreign.id)

        assert bucket_keys() == []
        assert not File.objects.exists()

    def test_blob_write_failure_creates_no_record(self, activity_log, user):
        """Test failed blob write aborts the upload."""
        broken = HierarchyStore(
            blobs=BlobGateway(_BrokenStorage()),
            activity=activity_log,
        )

        with pytest.raises(BlobWriteFailedError):
            broken.create_file(user.id, 'a.txt', 3, None, b'abc')

        assert not File.objects.exists()
        assert not ActivityRecord.objects.exists()

    def test_record_failure_rolls_back_blob(
        self,
        store,
        user,
        bucket_keys,
        monkeypatch,
    ):
        """Test blob is removed when the record cannot be written."""
        def _fail(**kwargs):
            raise RuntimeError('database down')

        monkeypatch.setattr(File.objects, 'create', _fail)

        with pytest.raises(RuntimeError):
            store.create_file(user.id, 'a.txt', 3, None, b'abc')

        assert bucket_keys() == []

    def test_records_upload(self, store, user, upload):
        """Test upload is recorded."""
        file_instance = upload(user)

        record = ActivityRecord.objects.get(user=user, action='upload')
        assert record.target_id == str(file_instance.id)
        assert record.target_name == 'notes.txt'


@pytest.mark.django_db
class TestListing:
    """Tests for folder and file listings."""

    def test_lists_only_direct_children_of_owner(
        self,
        store,
        user,
        other_user,
        upload,
    ):
        """Test listings are scoped to the owner and parent."""
        docs = store.create_folder(user.id, 'Docs')
        store.create_folder(user.id, 'Inner', docs.id)
        store.create_folder(other_user.id, 'Theirs')
        root_file = upload(user, 'root.txt')
        upload(user, 'inner.txt', folder=docs)
        upload(other_user, 'theirs.txt')

        assert store.list_folders(user.id) == [docs]
        assert [f.name for f in store.list_folders(user.id, docs.id)] == ['Inner']
        assert store.list_files(user.id) == [root_file]
        assert [f.name for f in store.list_files(user.id, docs.id)] == [
            'inner.txt',
        ]

    def test_newest_first_with_pagination(self, store, user):
        """Test ordering and limit/offset."""
        names = ['a', 'b', 'c']
        now = timezone.now()
        for index, name in enumerate(names):
            folder = store.create_folder(user.id, name)
            Folder.objects.filter(pk=folder.pk).update(
                created_at=now + timedelta(seconds=index),
            )

        assert [f.name for f in store.list_folders(user.id)] == ['c', 'b', 'a']
        assert [f.name for f in store.list_folders(user.id, limit=1, offset=1)] == [
            'b',
        ]

    def test_invalid_page(self, store, user):
        """Test negative offset is rejected."""
        with pytest.raises(InvalidArgumentError):
            store.list_files(user.id, offset=-1)


@pytest.mark.django_db
class TestGet:
    """Tests for single resource access."""

    def test_get_folder_forbidden(self, store, user, other_user):
        """Test foreign folder access is forbidden."""
        foreign = store.create_folder(other_user.id, 'Theirs')

        with pytest.raises(ForbiddenError):
            store.get_folder(user.id, foreign.id)

    def test_get_file_not_found(self, store, user):
        """Test unknown file id."""
        with pytest.raises(NotFoundError):
            store.get_file(user.id, '00000000-0000-0000-0000-000000000000')


@pytest.mark.django_db
class TestRename:
    """Tests for renaming."""

    def test_rename_file(self, store, user, upload):
        """Test rename changes only the name."""
        file_instance = upload(user, 'old.txt')

        renamed = store.rename(user.id, file_instance.id, 'new.txt')

        file_instance.refresh_from_db()
        assert renamed.name == 'new.txt'
        assert file_instance.name == 'new.txt'
        assert file_instance.original_name == 'old.txt'
        assert file_instance.storage_id == renamed.storage_id

    def test_rename_records_old_and_new_name(self, store, user):
        """Test activity target name is 'old → new'."""
        folder = store.create_folder(user.id, 'Docs')

        store.rename(user.id, folder.id, 'Papers', 'folder')

        record = ActivityRecord.objects.get(action='rename_folder')
        assert record.target_name == 'Docs → Papers'

    def test_descendant_paths_stay_stale(self, store, user, upload):
        """Test renaming a folder keeps descendant paths as created."""
        docs = store.create_folder(user.id, 'Docs')
        year = store.create_folder(user.id, '2024', docs.id)
        file_instance = upload(user, 'report.pdf', folder=year)

        store.rename(user.id, docs.id, 'Papers')

        year.refresh_from_db()
        file_instance.refresh_from_db()
        assert year.path == '/Docs/'
        assert file_instance.path == '/Docs/2024/'
        assert [crumb.name for crumb in store.get_path(user.id, year.id)] == [
            'Home',
            'Papers',
            '2024',
        ]

    def test_empty_name(self, store, user, upload):
        """Test empty new name is rejected."""
        file_instance = upload(user)

        with pytest.raises(InvalidArgumentError):
            store.rename(user.id, file_instance.id, '')

    def test_foreign_resource(self, store, user, other_user, upload):
        """Test renaming another user's file is forbidden."""
        file_instance = upload(other_user)

        with pytest.raises(ForbiddenError):
            store.rename(user.id, file_instance.id, 'mine.txt')

        file_instance.refresh_from_db()
        assert file_instance.name == 'notes.txt'

    def test_wrong_type_hint(self, store, user, upload):
        """Test a file id looked up as a folder is not found."""
        file_instance = upload(user)

        with pytest.raises(NotFoundError):
            store.rename(user.id, file_instance.id, 'x', 'folder')

    def test_unknown_type(self, store, user, upload):
        """Test unknown resource type is rejected."""
        file_instance = upload(user)

        with pytest.raises(InvalidArgumentError):
            store.rename(user.id, file_instance.id, 'x', 'album')

    def test_concurrently_deleted(self, store, user, monkeypatch):
        """Test rename of a resource deleted meanwhile is not found."""
        folder = store.create_folder(user.id, 'Docs')
        Folder.objects.filter(pk=folder.pk).delete()
        monkeypatch.setattr(
            hierarchy,
            'load_resource',
            lambda resource_id, resource_type=None: folder,
        )

        with pytest.raises(NotFoundError):
            store.rename(user.id, folder.id, 'Papers')


@pytest.mark.django_db
class TestMoveFile:
    """Tests for moving files."""

    def test_move_into_folder(self, store, user, upload):
        """Test move updates folder and path."""
        docs = store.create_folder(user.id, 'Docs')
        file_instance = upload(user)

        moved = store.move_file(user.id, file_instance.id, docs.id)

        file_instance.refresh_from_db()
        assert moved.folder == docs
        assert file_instance.folder_id == docs.id
        assert file_instance.path == '/Docs/'
        record = ActivityRecord.objects.get(action='move')
        assert record.details == '/ → /Docs/'

    def test_move_to_root(self, store, user, upload):
        """Test move without destination goes to the root."""
        docs = store.create_folder(user.id, 'Docs')
        file_instance = upload(user, folder=docs)

        store.move_file(user.id, file_instance.id)

        file_instance.refresh_from_db()
        assert file_instance.folder is None
        assert file_instance.path == '/'

    def test_move_into_foreign_folder(self, store, user, other_user, upload):
        """Test moving into another user's folder is forbidden."""
        foreign = store.create_folder(other_user.id, 'Theirs')
        file_instance = upload(user)

        with pytest.raises(ForbiddenError):
            store.move_file(user.id, file_instance.id, foreign.id)


@pytest.mark.django_db
class TestSetTags:
    """Tests for tagging."""

    def test_replaces_tags(self, store, user, upload):
        """Test tag set is replaced, deduplicated and sorted."""
        file_instance = upload(user)

        store.set_tags(user.id, file_instance.id, ['work', ' urgent ', 'work'])
        assert file_instance.tag_names == ['urgent', 'work']

        store.set_tags(user.id, file_instance.id, ['home'])
        assert file_instance.tag_names == ['home']
        assert Tag.objects.filter(user=user).count() == 3

    def test_tags_are_user_scoped(self, store, user, other_user, upload):
        """Test same tag name creates one tag per user."""
        store.set_tags(user.id, upload(user).id, ['work'])
        store.set_tags(other_user.id, upload(other_user).id, ['work'])

        assert Tag.objects.filter(name='work').count() == 2

    def test_tag_too_long(self, store, user, upload):
        """Test overlong tag names are rejected."""
        file_instance = upload(user)

        with pytest.raises(InvalidArgumentError):
            store.set_tags(user.id, file_instance.id, ['x' * 101])


@pytest.mark.django_db
class TestDelete:
    """Tests for deletion."""

    def test_delete_file(self, store, user, upload, bucket_keys):
        """Test delete removes blob, record and shares."""
        file_instance = upload(user)
        Share.objects.create(
            resource_id=file_instance.id,
            resource_type='file',
            owner=user,
            permissions=['read'],
            token='a' * 64,
        )

        store.delete(user.id, file_instance.id)

        assert not File.objects.filter(pk=file_instance.pk).exists()
        assert not Share.objects.exists()
        assert bucket_keys() == []
        assert ActivityRecord.objects.filter(action='delete').count() == 1

    def test_non_owner_cannot_delete(
        self,
        store,
        user,
        other_user,
        upload,
        blob_gateway,
    ):
        """Test forbidden delete leaves record and blob untouched."""
        file_instance = upload(user, content=b'keep me')

        with pytest.raises(ForbiddenError):
            store.delete(other_user.id, file_instance.id)

        assert File.objects.filter(pk=file_instance.pk).exists()
        assert blob_gateway.get(file_instance.storage_id) == b'keep me'

    def test_delete_missing(self, store, user):
        """Test deleting an unknown id."""
        with pytest.raises(NotFoundError):
            store.delete(user.id, '00000000-0000-0000-0000-000000000000')

    def test_delete_folder_cascades(self, store, user, upload, bucket_keys):
        """Test folder delete removes the whole subtree."""
        docs = store.create_folder(user.id, 'Docs')
        year = store.create_folder(user.id, '2024', docs.id)
        upload(user, 'a.txt', folder=docs)
        upload(user, 'b.txt', folder=year)
        kept = upload(user, 'kept.txt')
        Share.objects.create(
            resource_id=year.id,
            resource_type='folder',
            owner=user,
            permissions=['read'],
            token='b' * 64,
        )

        store.delete(user.id, docs.id)

        assert not Folder.objects.exists()
        assert list(File.objects.all()) == [kept]
        assert bucket_keys() == [kept.storage_id]
        assert not Share.objects.exists()
        record = ActivityRecord.objects.get(action='delete_folder')
        assert record.details == 'Removed 2 files and 1 subfolders'

    def test_delete_folder_blob_failure(
        self,
        store,
        user,
        upload,
        blob_gateway,
        monkeypatch,
    ):
        """Test a folder delete stopped midway records what it removed."""
        docs = store.create_folder(user.id, 'Docs')
        upload(user, 'a.txt', folder=docs)
        upload(user, 'b.txt', folder=docs)
        delete_blob = blob_gateway.delete
        calls = []

        def _fail_second(storage_id):
            calls.append(storage_id)
            if len(calls) > 1:
                raise BlobDeleteFailedError
            delete_blob(storage_id)

        monkeypatch.setattr(blob_gateway, 'delete', _fail_second)

        with pytest.raises(BlobDeleteFailedError):
            store.delete(user.id, docs.id)

        assert Folder.objects.filter(pk=docs.pk).exists()
        assert File.objects.count() == 1
        record = ActivityRecord.objects.get(action='delete_folder')
        assert record.target_id == str(docs.id)
        assert record.details == 'Aborted after removing 1 of 2 files'

    def test_delete_folder_first_blob_fails(
        self,
        store,
        user,
        upload,
        blob_gateway,
        monkeypatch,
    ):
        """Test nothing is recorded when no file was removed."""
        docs = store.create_folder(user.id, 'Docs')
        upload(user, 'a.txt', folder=docs)

        def _fail(storage_id):
            raise BlobDeleteFailedError

        monkeypatch.setattr(blob_gateway, 'delete', _fail)

        with pytest.raises(BlobDeleteFailedError):
            store.delete(user.id, docs.id)

        assert File.objects.count() == 1
        assert not ActivityRecord.objects.filter(action='delete_folder').exists()


@pytest.mark.django_db
class TestGetPath:
    """Tests for breadcrumbs."""

    def test_breadcrumbs(self, store, user):
        """Test trail starts at Home and ends at the folder."""
        docs = store.create_folder(user.id, 'Docs')
        year = store.create_folder(user.id, '2024', docs.id)

        crumbs = store.get_path(user.id, year.id)

        assert crumbs[0] == HOME
        assert crumbs[0].id is None
        assert [(c.id, c.name, c.path) for c in crumbs[1:]] == [
            (docs.id, 'Docs', '/'),
            (year.id, '2024', '/Docs/'),
        ]

    def test_foreign_folder(self, store, user, other_user):
        """Test walking a foreign folder is forbidden."""
        foreign = store.create_folder(other_user.id, 'Theirs')

        with pytest.raises(ForbiddenError):
            store.get_path(user.id, foreign.id)


@pytest.mark.django_db
class TestDownload:
    """Tests for content download."""

    def test_owner_download(self, store, user, upload):
        """Test owner reads content and download is recorded."""
        file_instance = upload(user, content=b'payload')

        downloaded, content = store.download(user.id, file_instance.id)

        assert downloaded == file_instance
        assert content == b'payload'
        assert ActivityRecord.objects.filter(action='download').count() == 1

    def test_non_owner_forbidden(self, store, user, other_user, upload):
        """Test unshared files are private."""
        file_instance = upload(user)

        with pytest.raises(ForbiddenError):
            store.download(other_user.id, file_instance.id)

    def test_non_owner_allowed_while_shared(
        self,
        store,
        share_manager,
        user,
        other_user,
        upload,
    ):
        """Test any caller may download a shared file."""
        file_instance = upload(user, content=b'shared')
        share_manager.create_share(user.id, file_instance.id, 'file')

        _, content = store.download(other_user.id, file_instance.id)

        assert content == b'shared'

    def test_expired_share_does_not_grant(
        self,
        store,
        user,
        other_user,
        upload,
    ):
        """Test an expired share no longer counts as shared."""
        file_instance = upload(user)
        Share.objects.create(
            resource_id=file_instance.id,
            resource_type='file',
            owner=user,
            permissions=['read'],
            token='c' * 64,
            expires_at=timezone.now() - timedelta(minutes=1),
        )

        with pytest.raises(ForbiddenError):
            store.download(other_user.id, file_instance.id)

    def test_missing_blob(self, store, user, upload, blob_gateway):
        """Test a record without blob reports not found."""
        file_instance = upload(user)
        blob_gateway.delete(file_instance.storage_id)

        with pytest.raises(NotFoundError):
            store.download(user.id, file_instance.id)
