"""
LOGISTICS App - Real-time Event Broadcasting

Utility functions to broadcast events via Django Channels.
Used by signals and services to push real-time updates.

Groups:
- order_<uuid>: client and driver of one order (chat + status)
- drivers: every connected driver (dispatch feed)
"""

import logging

from django.utils import timezone

logger = logging.getLogger(__name__)

DRIVERS_GROUP = 'drivers'


def order_group(order_id) -> str:
    return f'order_{order_id}'


def get_channel_layer():
    """Get the Django Channels layer (lazy import)."""
    from channels.layers import get_channel_layer as _get_channel_layer
    return _get_channel_layer()


def _send_group_event(group_name: str, event: dict) -> bool:
    """Send event to a channel group. Broadcast failures never break the caller."""
    channel_layer = get_channel_layer()
    if not channel_layer:
        return False

    try:
        from asgiref.sync import async_to_sync
        async_to_sync(channel_layer.group_send)(group_name, event)
        return True
    except Exception as e:
        logger.error(f"[EVENTS] Failed to send to group {group_name}: {e}")
        return False


# ============================================
# ORDER EVENTS
# ============================================

def broadcast_order_status(order_id, new_status: str, driver_id=None):
    """
    Broadcast order status change to all interested parties.

    Notifies:
    - Client and driver following the order
    - The driver dispatch feed
    """
    timestamp = timezone.now().isoformat()

    _send_group_event(
        order_group(order_id),
        {
            'type': 'order_status',
            'order_id': str(order_id),
            'status': new_status,
            'timestamp': timestamp,
        }
    )

    _send_group_event(
        DRIVERS_GROUP,
        {
            'type': 'order_status',
            'order_id': str(order_id),
            'status': new_status,
            'driver_id': str(driver_id) if driver_id else None,
            'timestamp': timestamp,
        }
    )

    logger.debug(f"[EVENTS] Broadcasted status change: {str(order_id)[:8]} -> {new_status}")


def broadcast_new_order(order_data: dict):
    """Announce a new pending order to every connected driver."""
    _send_group_event(
        DRIVERS_GROUP,
        {
            'type': 'new_order',
            'order': order_data,
        }
    )

    logger.info(f"[EVENTS] Broadcasted new order {str(order_data.get('id', ''))[:8]}")


def broadcast_order_taken(order_id, driver_id):
    """Tell the other drivers an order is no longer available."""
    _send_group_event(
        DRIVERS_GROUP,
        {
            'type': 'order_taken',
            'order_id': str(order_id),
            'driver_id': str(driver_id),
        }
    )


# ============================================
# CHAT EVENTS
# ============================================

def broadcast_chat_message(order_id, message_data: dict):
    """Fan a persisted chat message out to both parties."""
    _send_group_event(
        order_group(order_id),
        {
            'type': 'chat_message',
            'message': message_data,
        }
    )


def broadcast_messages_read(order_id, reader_id, count: int):
    _send_group_event(
        order_group(order_id),
        {
            'type': 'messages_read',
            'reader_id': str(reader_id),
            'count': count,
        }
    )


def broadcast_chat_closed(order_id):
    """
    Close the chat of a completed order.

    Connected consumers forward the event then disconnect.
    """
    _send_group_event(
        order_group(order_id),
        {
            'type': 'chat_closed',
            'order_id': str(order_id),
        }
    )

    logger.info(f"[EVENTS] Chat closed for order {str(order_id)[:8]}")
