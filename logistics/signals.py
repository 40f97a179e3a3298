"""
LOGISTICS App - Django Signals

Broadcast real-time events when orders are created or change status.
"""

import logging

from django.db import transaction
from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from logistics.models import Order, OrderStatus
from logistics import events

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=Order)
def capture_previous_status(sender, instance, **kwargs):
    """Capture the previous status before save for change detection."""
    instance._previous_status = None
    if instance.pk and not instance._state.adding:
        instance._previous_status = (
            Order.objects.filter(pk=instance.pk)
            .values_list('status', flat=True)
            .first()
        )


@receiver(post_save, sender=Order)
def on_order_saved(sender, instance, created, **kwargs):
    """
    Handle order creation and updates.

    On creation:
    - Broadcast the new order to the driver feed

    On status change:
    - Broadcast status update to client, driver and feed
    - Withdraw accepted orders from the feed
    - Close the chat of completed orders
    """
    if created:
        _handle_new_order(instance)
    else:
        _handle_order_update(instance)


def _handle_new_order(order: Order):
    if order.status != OrderStatus.PENDING:
        return

    logger.info(f"[SIGNAL] New order created: {order.id}")

    from logistics.serializers import OrderSerializer
    order_data = OrderSerializer(order).data

    transaction.on_commit(lambda: events.broadcast_new_order(dict(order_data)))


def _handle_order_update(order: Order):
    previous = getattr(order, '_previous_status', None)
    if previous is None or previous == order.status:
        return

    logger.info(f"[SIGNAL] Order {str(order.id)[:8]}: {previous} -> {order.status}")

    order_id, status, driver_id = order.id, order.status, order.driver_id

    def _broadcast():
        events.broadcast_order_status(order_id, status, driver_id)
        if status == OrderStatus.ACCEPTED:
            events.broadcast_order_taken(order_id, driver_id)
        elif status == OrderStatus.COMPLETED:
            events.broadcast_chat_closed(order_id)

    transaction.on_commit(_broadcast)
