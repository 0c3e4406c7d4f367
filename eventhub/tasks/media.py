"""Celery tasks for media cleanup."""

import logging

from eventhub.celery_app import app as celery_app
from eventhub.services.media import MediaError, get_media_host

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3, default_retry_delay=60)
def purge_media(self, media_key: str) -> dict:
    """Delete an image that no event references any more.

    Args:
        media_key: Storage key returned by the media host when the image was stored

    Returns:
        dict with the key and whether it was deleted
    """
    try:
        get_media_host().delete(media_key)
    except MediaError as e:
        logger.warning(f"Media deletion failed for {media_key}: {e}")
        if self.request.retries < self.max_retries:
            raise self.retry(exc=e) from e
        return {"media_key": media_key, "deleted": False}

    return {"media_key": media_key, "deleted": True}


def schedule_media_deletion(media_key: str) -> None:
    """Queue an image for deletion in the background."""
    purge_media.delay(media_key)
    logger.info(f"Queued deletion of media {media_key}")
