"""Tests for the activity log."""

from datetime import timedelta

import pytest
from django.utils import timezone

from server.apps.activity.logic.activity_log import ActivityLog
from server.apps.activity.models import ActivityRecord
from server.apps.files.config import DriveConfig
from server.apps.files.exceptions import InvalidArgumentError


def _age(record, days):
    ActivityRecord.objects.filter(pk=record.pk).update(
        created_at=timezone.now() - timedelta(days=days),
    )


@pytest.mark.django_db
class TestRecord:
    """Tests for appending records."""

    def test_record(self, activity_log, user):
        """Test a record is written with request metadata."""
        record = activity_log.record(
            user.id,
            'upload',
            '123',
            'a.txt',
            'file',
            details='first',
        )

        assert record is not None
        assert record.user_id == user.id
        assert record.details == 'first'
        assert record.ip_address == '10.0.0.1'
        assert record.user_agent == 'pytest'

    def test_failure_is_swallowed(self, activity_log, user, monkeypatch):
        """Test a failing write returns None instead of raising."""
        def _fail(**kwargs):
            raise RuntimeError('log store down')

        monkeypatch.setattr(ActivityRecord.objects, 'create', _fail)

        assert activity_log.record(user.id, 'upload', '1', 'a', 'file') is None

    def test_bind_keeps_config(self, drive_config):
        """Test bound logs share configuration."""
        bound = ActivityLog(drive_config).bind('127.0.0.1', 'agent')

        assert bound.config is drive_config


@pytest.mark.django_db
class TestListActivities:
    """Tests for listing records."""

    def test_newest_first_and_scoped(self, activity_log, user, other_user):
        """Test records are the user's own, newest first."""
        older = activity_log.record(user.id, 'upload', '1', 'old', 'file')
        newer = activity_log.record(user.id, 'delete', '1', 'old', 'file')
        activity_log.record(other_user.id, 'upload', '2', 'x', 'file')
        _age(older, 1)

        records = activity_log.list_activities(user.id)

        assert records == [newer, older]
        assert activity_log.list_activities(user.id, limit=1, offset=1) == [
            older,
        ]

    def test_zero_limit(self, activity_log, user):
        """Test a zero page size is rejected like other listings."""
        activity_log.record(user.id, 'upload', '1', 'a', 'file')

        with pytest.raises(InvalidArgumentError):
            activity_log.list_activities(user.id, limit=0)


@pytest.mark.django_db
class TestPrune:
    """Tests for age-based pruning."""

    def test_prunes_old_records_in_batches(self, user):
        """Test all records past the window go, batch by batch."""
        activity = ActivityLog(DriveConfig(activity_prune_batch_size=2))
        old = [
            activity.record(user.id, 'upload', str(i), 'f', 'file')
            for i in range(5)
        ]
        recent = activity.record(user.id, 'upload', 'r', 'f', 'file')
        for record in old:
            _age(record, 91)

        assert activity.count_prunable() == 5
        assert activity.prune() == 5
        assert list(ActivityRecord.objects.all()) == [recent]

    def test_prune_is_idempotent(self, activity_log, user):
        """Test a second prune deletes nothing."""
        record = activity_log.record(user.id, 'upload', '1', 'f', 'file')
        _age(record, 100)

        assert activity_log.prune(older_than_days=90) == 1
        assert activity_log.prune(older_than_days=90) == 0

    @pytest.mark.parametrize(('days', 'batch_size'), [(0, None), (-1, None), (90, 0)])
    def test_invalid_arguments(self, activity_log, days, batch_size):
        """Test non-positive windows and batch sizes are rejected."""
        with pytest.raises(InvalidArgumentError):
            activity_log.prune(days, batch_size)
