"""Shared fixtures for drive app tests."""

import boto3
import pytest
from django.contrib.auth import get_user_model
from moto import mock_aws

from server.apps.activity.logic.activity_log import ActivityLog
from server.apps.files.config import DriveConfig
from server.apps.files.infrastructure.blob_gateway import BlobGateway
from server.apps.files.logic.hierarchy import HierarchyStore
from server.apps.files.logic.sharing import ShareManager

User = get_user_model()

BUCKET_NAME = 'drive'


@pytest.fixture
def user(db):
    """Create test user.

    Returns:
        User instance for testing.
    """
    return User.objects.create_user(
        username='testuser',
        password='testpass123',
        email='test@example.com',
    )


@pytest.fixture
def other_user(db):
    """Create second test user for isolation tests.

    Returns:
        Second user instance.
    """
    return User.objects.create_user(
        username='otheruser',
        password='testpass123',
        email='other@example.com',
    )


@pytest.fixture
def mock_s3():
    """Mock S3 service with the drive bucket.

    Yields:
        boto3 S3 resource with the drive bucket created.
    """
    with mock_aws():
        conn = boto3.resource('s3', region_name='us-east-1')
        conn.create_bucket(Bucket=BUCKET_NAME)
        yield conn


@pytest.fixture
def bucket_keys(mock_s3):
    """Callable listing the keys currently in the bucket."""
    def _keys() -> list[str]:
        return [obj.key for obj in mock_s3.Bucket(BUCKET_NAME).objects.all()]
    return _keys


@pytest.fixture
def drive_config():
    """Drive configuration with a recognizable share base URL."""
    return DriveConfig(
        share_base_url='https://drive.example.com',
        default_page_size=50,
    )


@pytest.fixture
def activity_log(drive_config):
    """Activity log stamping a fixed client."""
    return ActivityLog(drive_config).bind('10.0.0.1', 'pytest')


@pytest.fixture
def blob_gateway(mock_s3):
    """Blob gateway over the mocked bucket."""
    return BlobGateway()


@pytest.fixture
def store(blob_gateway, activity_log, drive_config):
    """Hierarchy store wired to the mocked bucket."""
    return HierarchyStore(
        blobs=blob_gateway,
        activity=activity_log,
        config=drive_config,
    )


@pytest.fixture
def share_manager(blob_gateway, activity_log, drive_config):
    """Share manager wired to the mocked bucket."""
    return ShareManager(
        blobs=blob_gateway,
        activity=activity_log,
        config=drive_config,
    )


@pytest.fixture
def upload(store):
    """Callable uploading a small text file for a user."""
    def _upload(owner, name='notes.txt', content=b'hello drive', folder=None):
        return store.create_file(
            owner.id,
            name,
            len(content),
            None,
            content,
            folder.id if folder else None,
        )
    return _upload
