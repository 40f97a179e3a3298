"""
LOGISTICS App - Order Chat Service for KwiiGo

Messages between the client and the assigned driver of one order.
Chat is open only while the order is accepted or in progress, and
the history is deleted when the order completes.
"""

import logging

from django.conf import settings

from core.models import UserRole
from logistics.exceptions import ChatClosed, OrderAccessDenied
from logistics.models import ChatMessage, Order, SenderRole

logger = logging.getLogger(__name__)


def can_chat(order: Order) -> bool:
    return order.is_active


def _sender_role(order: Order, user) -> str:
    if user.pk == order.client_id:
        return SenderRole.CLIENT
    if order.driver_id is not None and user.pk == order.driver_id:
        return SenderRole.DRIVER
    raise OrderAccessDenied("Vous ne participez pas à cette commande")


def _assert_can_read(order: Order, user):
    if user.role == UserRole.ADMIN:
        return
    if not order.is_participant(user):
        raise OrderAccessDenied("Vous ne participez pas à cette commande")


def send_message(order: Order, sender, text: str) -> ChatMessage:
    """
    Post a message on an order's chat.

    Raises:
        OrderAccessDenied: If the sender is neither the client nor the driver
        ChatClosed: If the order is not accepted or in progress
        ValueError: If the text is empty or too long
    """
    sender_role = _sender_role(order, sender)

    if not can_chat(order):
        raise ChatClosed("Le chat n'est disponible que pour les commandes en cours")

    text = (text or '').strip()
    if not text:
        raise ValueError("Le message ne peut pas être vide")

    max_length = settings.CHAT_MAX_MESSAGE_LENGTH
    if len(text) > max_length:
        raise ValueError(f"Le message ne peut pas dépasser {max_length} caractères")

    message = ChatMessage.objects.create(
        order=order,
        sender=sender,
        sender_role=sender_role,
        message=text,
    )

    logger.info(f"[CHAT] {sender_role} message on order {str(order.id)[:8]}")
    return message


def list_messages(order: Order, user):
    """
    Messages of an order, oldest first.

    Raises:
        OrderAccessDenied: If the user is not a participant (admins may read)
        ChatClosed: If the order is not active
    """
    _assert_can_read(order, user)

    if not can_chat(order):
        raise ChatClosed("Le chat de cette commande est fermé")

    return order.messages.select_related('sender').order_by('timestamp')


def mark_as_read(order: Order, user) -> int:
    """Mark as read the unread messages the other party sent. Returns the count."""
    own_role = _sender_role(order, user)
    count = (
        order.messages
        .filter(read=False)
        .exclude(sender_role=own_role)
        .update(read=True)
    )
    if count:
        logger.debug(f"[CHAT] {count} messages read on order {str(order.id)[:8]}")
    return count


def unread_count(order: Order, user) -> int:
    own_role = _sender_role(order, user)
    return order.messages.filter(read=False).exclude(sender_role=own_role).count()


def delete_messages(order: Order) -> int:
    """Delete the whole chat history of an order. Returns the count."""
    count, _ = ChatMessage.objects.filter(order=order).delete()
    return count
