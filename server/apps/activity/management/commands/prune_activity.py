"""Management command to prune old activity records."""

import logging
from typing import Any

from django.core.management.base import BaseCommand, CommandError

from server.apps.activity.logic.activity_log import ActivityLog
from server.apps.files.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Delete activity records older than the retention window."""

    help = 'Prune activity records older than the retention window'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--days',
            type=int,
            default=None,
            help='Retention window in days (default: DRIVE_ACTIVITY_RETENTION_DAYS)',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=None,
            help='Records per delete batch (default: DRIVE_ACTIVITY_PRUNE_BATCH_SIZE)',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without deleting',
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the prune command.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        activity = ActivityLog()
        days = options['days']
        if days is None:
            days = activity.config.activity_retention_days

        try:
            cutoff = activity.cutoff(days)
            self.stdout.write(
                f'Looking for activity before {cutoff} '
                f'(older than {days} days)',
            )

            if options['dry_run']:
                count = activity.count_prunable(days)
                self.stdout.write(
                    self.style.SUCCESS(f'Would prune {count} activity records'),
                )
                return

            count = activity.prune(days, options['batch_size'])
        except InvalidArgumentError as exc:
            raise CommandError(exc.message) from exc

        logger.info('prune_activity removed %d records', count)
        self.stdout.write(
            self.style.SUCCESS(f'Pruned {count} activity records'),
        )
