"""Signal handlers for files app."""

import logging

from django.db.models.signals import post_delete
from django.dispatch import receiver

from server.apps.files.models import File, Folder, Share

logger = logging.getLogger(__name__)


@receiver(post_delete, sender=File)
@receiver(post_delete, sender=Folder)
def delete_shares_of_resource(
    sender: type[File] | type[Folder],
    instance: File | Folder,
    **kwargs: object,
) -> None:
    """Delete shares pointing at a removed file or folder.

    Shares reference resources by id only, so nothing else removes
    them when the resource goes away (via the drive logic, the admin,
    or a folder cascade).

    Args:
        sender: The File or Folder model class.
        instance: The instance being deleted.
        **kwargs: Additional signal arguments.
    """
    deleted, _ = Share.objects.for_resource(
        instance.resource_type,
        instance.id,
    ).delete()

    if deleted:
        logger.info(
            'Deleted %d shares of removed %s %s',
            deleted,
            instance.resource_type,
            instance.id,
        )
