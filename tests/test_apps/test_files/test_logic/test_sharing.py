"""Tests for share links."""

from datetime import timedelta

import pytest
from django.utils import timezone

from server.apps.activity.models import ActivityRecord
from server.apps.files.exceptions import (
    ForbiddenError,
    GoneError,
    InvalidArgumentError,
    NotFoundError,
)
from server.apps.files.logic.sharing import (
    UNSET,
    generate_share_token,
    validate_permissions,
)
from server.apps.files.models import Share


class TestShareToken:
    """Tests for token generation."""

    def test_token_format(self):
        """Test tokens are 64 lowercase hex characters."""
        token = generate_share_token()

        assert len(token) == 64
        assert token == token.lower()
        int(token, 16)

    def test_tokens_do_not_collide(self):
        """Test many tokens are distinct even in their prefixes."""
        tokens = [generate_share_token() for _ in range(10_000)]

        assert len(set(tokens)) == len(tokens)
        assert len({token[:12] for token in tokens}) == len(tokens)


class TestValidatePermissions:
    """Tests for permission validation."""

    def test_normalizes(self):
        """Test permissions are deduplicated and sorted."""
        assert validate_permissions(['write', 'read', 'write']) == [
            'read',
            'write',
        ]

    @pytest.mark.parametrize('permissions', [[], None, ['admin'], ['read', 'x']])
    def test_rejects(self, permissions):
        """Test empty or unknown permissions are rejected."""
        with pytest.raises(InvalidArgumentError):
            validate_permissions(permissions)


@pytest.mark.django_db
class TestCreateShare:
    """Tests for share creation."""

    def test_share_file(self, share_manager, user, upload):
        """Test sharing a file makes it shared."""
        file_instance = upload(user)

        share = share_manager.create_share(user.id, file_instance.id)

        assert share.resource_type == 'file'
        assert share.resource_id == file_instance.id
        assert share.permissions == ['read']
        assert share.is_public
        assert len(share.token) == 64
        assert file_instance.is_shared
        assert file_instance.share_token == share.token
        assert share_manager.share_url(share) == (
            f'https://drive.example.com/shared/{share.token}'
        )
        record = ActivityRecord.objects.get(action='share')
        assert record.target_id == str(file_instance.id)

    def test_share_folder(self, share_manager, store, user):
        """Test sharing a folder is recorded as share_folder."""
        folder = store.create_folder(user.id, 'Docs')

        share = share_manager.create_share(
            user.id,
            folder.id,
            'folder',
            permissions=['read', 'write'],
            shared_with_email='friend@example.com',
        )

        assert share.resource_type == 'folder'
        assert share.permissions == ['read', 'write']
        assert share.shared_with_email == 'friend@example.com'
        assert ActivityRecord.objects.filter(action='share_folder').exists()

    def test_non_owner(self, share_manager, user, other_user, upload):
        """Test sharing another user's file is forbidden."""
        file_instance = upload(user)

        with pytest.raises(ForbiddenError):
            share_manager.create_share(other_user.id, file_instance.id)

        assert not Share.objects.exists()

    def test_missing_resource(self, share_manager, user):
        """Test sharing an unknown id."""
        with pytest.raises(NotFoundError):
            share_manager.create_share(
                user.id,
                '00000000-0000-0000-0000-000000000000',
            )

    def test_past_expiry(self, share_manager, user, upload):
        """Test an expiry in the past is rejected."""
        file_instance = upload(user)

        with pytest.raises(InvalidArgumentError):
            share_manager.create_share(
                user.id,
                file_instance.id,
                expires_at=timezone.now() - timedelta(hours=1),
            )

    def test_activity_store_down(self, share_manager, user, upload, monkeypatch):
        """Test the share is created and kept when recording fails."""
        file_instance = upload(user)

        def _fail(**kwargs):
            raise RuntimeError('log store down')

        monkeypatch.setattr(ActivityRecord.objects, 'create', _fail)

        share = share_manager.create_share(user.id, file_instance.id)

        assert Share.objects.filter(pk=share.pk).exists()
        assert file_instance.is_shared
        assert share_manager.resolve_share(share.token)[1] == file_instance
        monkeypatch.undo()
        assert not ActivityRecord.objects.filter(action='share').exists()

    def test_bad_permissions(self, share_manager, user, upload):
        """Test unknown permissions are rejected."""
        file_instance = upload(user)

        with pytest.raises(InvalidArgumentError):
            share_manager.create_share(
                user.id,
                file_instance.id,
                permissions=['delete'],
            )


@pytest.mark.django_db
class TestResolveShare:
    """Tests for share resolution."""

    def test_resolves_resource(self, share_manager, user, upload):
        """Test a valid token resolves to its resource."""
        file_instance = upload(user)
        share = share_manager.create_share(user.id, file_instance.id)

        resolved_share, resource = share_manager.resolve_share(share.token)

        assert resolved_share == share
        assert resource == file_instance

    def test_unknown_token(self, share_manager):
        """Test an unknown token is not found."""
        with pytest.raises(NotFoundError):
            share_manager.resolve_share('f' * 64)

    def test_expired_share_is_gone(self, share_manager, user, upload):
        """Test a share past its expiry is gone and no longer shared."""
        file_instance = upload(user)
        share = share_manager.create_share(
            user.id,
            file_instance.id,
            expires_at=timezone.now() + timedelta(hours=1),
        )
        assert share_manager.resolve_share(share.token)[1] == file_instance

        Share.objects.filter(pk=share.pk).update(
            expires_at=timezone.now() - timedelta(seconds=1),
        )

        with pytest.raises(GoneError):
            share_manager.resolve_share(share.token)

        assert not file_instance.is_shared
        assert Share.objects.filter(pk=share.pk).exists()

    def test_resource_deleted(self, share_manager, store, user, upload):
        """Test deleting a resource removes its shares."""
        file_instance = upload(user)
        share = share_manager.create_share(user.id, file_instance.id)

        store.delete(user.id, file_instance.id)

        with pytest.raises(NotFoundError):
            share_manager.resolve_share(share.token)


@pytest.mark.django_db
class TestDownloadShared:
    """Tests for public share-link downloads."""

    def test_download(self, share_manager, user, upload):
        """Test downloading through a share link."""
        file_instance = upload(user, content=b'public bytes')
        share = share_manager.create_share(user.id, file_instance.id)

        _, downloaded, content = share_manager.download_shared(share.token)

        assert downloaded == file_instance
        assert content == b'public bytes'
        record = ActivityRecord.objects.get(action='download')
        assert record.user_id == user.id
        assert record.details == 'via share link'

    def test_folder_share(self, share_manager, store, user):
        """Test folder shares cannot be downloaded."""
        folder = store.create_folder(user.id, 'Docs')
        share = share_manager.create_share(user.id, folder.id)

        with pytest.raises(InvalidArgumentError):
            share_manager.download_shared(share.token)

    def test_write_only_share(self, share_manager, user, upload):
        """Test a share without read access cannot download."""
        file_instance = upload(user)
        share = share_manager.create_share(
            user.id,
            file_instance.id,
            permissions=['write'],
        )

        with pytest.raises(ForbiddenError):
            share_manager.download_shared(share.token)


@pytest.mark.django_db
class TestManageShares:
    """Tests for listing, updating and revoking shares."""

    def test_list_shares(self, share_manager, user, other_user, upload):
        """Test listing returns own shares with their resources."""
        file_instance = upload(user)
        share = share_manager.create_share(user.id, file_instance.id)
        share_manager.create_share(other_user.id, upload(other_user).id)

        listed = share_manager.list_shares(user.id)

        assert listed == [(share, file_instance)]

    def test_update_share_partially(self, share_manager, user, upload):
        """Test only given fields change."""
        file_instance = upload(user)
        expiry = timezone.now() + timedelta(days=1)
        share = share_manager.create_share(
            user.id,
            file_instance.id,
            expires_at=expiry,
        )

        updated = share_manager.update_share(
            user.id,
            share.id,
            permissions=['read', 'write'],
        )

        share.refresh_from_db()
        assert updated.permissions == ['read', 'write']
        assert share.permissions == ['read', 'write']
        assert share.expires_at == expiry
        assert share.is_public
        assert ActivityRecord.objects.filter(action='update_share').exists()

    def test_update_clears_expiry(self, share_manager, user, upload):
        """Test None clears the expiry while UNSET keeps it."""
        file_instance = upload(user)
        share = share_manager.create_share(
            user.id,
            file_instance.id,
            expires_at=timezone.now() + timedelta(days=1),
        )

        share_manager.update_share(user.id, share.id, expires_at=UNSET)
        share.refresh_from_db()
        assert share.expires_at is not None

        share_manager.update_share(user.id, share.id, expires_at=None)
        share.refresh_from_db()
        assert share.expires_at is None

    def test_update_foreign_share(self, share_manager, user, other_user, upload):
        """Test updating another user's share is forbidden."""
        share = share_manager.create_share(user.id, upload(user).id)

        with pytest.raises(ForbiddenError):
            share_manager.update_share(other_user.id, share.id, is_public=False)

    def test_revoke(self, share_manager, user, upload):
        """Test revoking deletes the share and unshares the file."""
        file_instance = upload(user)
        share = share_manager.create_share(user.id, file_instance.id)

        share_manager.revoke_share(user.id, share.id)

        assert not Share.objects.exists()
        assert not file_instance.is_shared
        record = ActivityRecord.objects.get(action='revoke_share')
        assert record.target_name == 'notes.txt'

    def test_revoke_missing(self, share_manager, user):
        """Test revoking an unknown share."""
        with pytest.raises(NotFoundError):
            share_manager.revoke_share(
                user.id,
                '00000000-0000-0000-0000-000000000000',
            )

    def test_share_state(self, share_manager, user, upload):
        """Test derived share state follows the newest active share."""
        file_instance = upload(user)
        assert share_manager.share_state('file', file_instance.id) == (
            False,
            None,
            None,
        )

        share = share_manager.create_share(user.id, file_instance.id)

        assert share_manager.share_state('file', file_instance.id) == (
            True,
            share.token,
            None,
        )
