"""
LOGISTICS App - Celery Tasks

Periodic housekeeping for order chats.
"""

from celery import shared_task
import logging

logger = logging.getLogger(__name__)


@shared_task(name='logistics.tasks.purge_closed_chats')
def purge_closed_chats():
    """
    Delete chat messages of orders that are no longer active.

    Completion already deletes the history; this catches anything
    left behind (orders changed from the admin, failed deletes).
    """
    from logistics.models import ACTIVE_STATUSES, ChatMessage

    deleted, _ = ChatMessage.objects.exclude(order__status__in=ACTIVE_STATUSES).delete()
    if deleted:
        logger.info(f"[CHAT TASK] Purged {deleted} messages of closed orders")
    return deleted
