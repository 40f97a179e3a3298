"""
LOGISTICS App - WebSocket Consumers for Real-time Chat & Dispatch

Provides real-time updates for:
- Order chat between the client and the assigned driver
- Driver dispatch feed (new orders, orders taken)
"""

import logging
from typing import Any, Dict, Optional

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from logistics.events import DRIVERS_GROUP, order_group
from logistics.exceptions import LifecycleError

logger = logging.getLogger(__name__)

# Close codes
CLOSE_UNAUTHORIZED = 4003
CLOSE_NOT_FOUND = 4004
CLOSE_CHAT_INACTIVE = 4009


class OrderChatConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer for the chat of one order.

    Clients connect to: ws://host/ws/orders/<order_id>/chat/?token=<jwt>

    Events sent by clients:
    - message: {"type": "message", "message": "..."} persist and fan out
    - read: mark the other party's messages as read
    - ping: keepalive

    Events received by clients:
    - chat_message: a new message on this order
    - messages_read: the other party read the messages
    - order_status: the order changed status
    - chat_closed: the order completed, the connection then closes
    """

    order_id = None
    room_group_name = None

    async def connect(self):
        self.order_id = self.scope['url_route']['kwargs']['order_id']
        user = self.scope.get('user')

        if not user or not user.is_authenticated:
            await self.close(code=CLOSE_UNAUTHORIZED)
            return

        order = await self.get_order_state(user)
        if order is None:
            await self.close(code=CLOSE_NOT_FOUND)
            return
        if not order['is_participant']:
            await self.close(code=CLOSE_UNAUTHORIZED)
            return
        if not order['is_active']:
            await self.close(code=CLOSE_CHAT_INACTIVE)
            return

        self.room_group_name = order_group(self.order_id)
        await self.channel_layer.group_add(self.room_group_name, self.channel_name)
        await self.accept()

        await self.send_json({
            'type': 'connection_established',
            'order_id': str(self.order_id),
            'status': order['status'],
            'unread': order['unread'],
        })

        logger.info(f"[WS] {user.email} joined chat of order {str(self.order_id)[:8]}")

    async def disconnect(self, close_code):
        if self.room_group_name:
            await self.channel_layer.group_discard(self.room_group_name, self.channel_name)
            logger.info(f"[WS] Left chat of order {str(self.order_id)[:8]} ({close_code})")

    async def receive_json(self, content):
        """Handle incoming WebSocket messages from participants."""
        message_type = content.get('type')

        if message_type == 'ping':
            await self.send_json({'type': 'pong'})

        elif message_type == 'message':
            try:
                data = await self.save_message(content.get('message', ''))
            except (LifecycleError, ValueError) as e:
                await self.send_json({'type': 'error', 'error': str(e)})
                return
            await self.channel_layer.group_send(
                self.room_group_name,
                {'type': 'chat_message', 'message': data}
            )

        elif message_type == 'read':
            try:
                count = await self.mark_read()
            except LifecycleError as e:
                await self.send_json({'type': 'error', 'error': str(e)})
                return
            if count:
                await self.channel_layer.group_send(
                    self.room_group_name,
                    {
                        'type': 'messages_read',
                        'reader_id': str(self.scope['user'].pk),
                        'count': count,
                    }
                )

        else:
            await self.send_json({
                'type': 'error',
                'error': f"Type de message inconnu: {message_type}",
            })

    # ============================================
    # Event Handlers (called via channel_layer.group_send)
    # ============================================

    async def chat_message(self, event):
        await self.send_json({'type': 'chat_message', 'message': event['message']})

    async def messages_read(self, event):
        await self.send_json({
            'type': 'messages_read',
            'reader_id': event['reader_id'],
            'count': event['count'],
        })

    async def order_status(self, event):
        await self.send_json({
            'type': 'order_status',
            'status': event['status'],
            'timestamp': event['timestamp'],
        })

    async def chat_closed(self, event):
        """Tell the participants the chat is over, then hang up."""
        await self.send_json({'type': 'chat_closed', 'order_id': event['order_id']})
        await self.close(code=CLOSE_CHAT_INACTIVE)

    # ============================================
    # Database helpers
    # ============================================

    @database_sync_to_async
    def get_order_state(self, user) -> Optional[Dict[str, Any]]:
        from core.models import UserRole
        from logistics.services import chat
        from logistics.services.lifecycle import get_order

        try:
            order = get_order(self.order_id)
        except LifecycleError:
            return None

        is_participant = order.is_participant(user)
        return {
            'status': order.status,
            'is_active': chat.can_chat(order),
            'is_participant': is_participant or user.role == UserRole.ADMIN,
            'unread': chat.unread_count(order, user) if is_participant else 0,
        }

    @database_sync_to_async
    def save_message(self, text: str) -> Dict[str, Any]:
        from logistics.serializers import ChatMessageSerializer
        from logistics.services import chat
        from logistics.services.lifecycle import get_order

        order = get_order(self.order_id)
        message = chat.send_message(order, self.scope['user'], text)
        return dict(ChatMessageSerializer(message).data)

    @database_sync_to_async
    def mark_read(self) -> int:
        from logistics.services import chat
        from logistics.services.lifecycle import get_order

        order = get_order(self.order_id)
        return chat.mark_as_read(order, self.scope['user'])


class DriverFeedConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer for the driver app dispatch feed.

    Drivers connect to: ws://host/ws/drivers/?token=<jwt>

    Events received by drivers:
    - new_order: a client created an order
    - order_taken: another driver accepted an order
    - order_status: an order changed status
    """

    joined = False

    async def connect(self):
        from core.models import UserRole

        user = self.scope.get('user')
        if not user or not user.is_authenticated or user.role != UserRole.DRIVER:
            await self.close(code=CLOSE_UNAUTHORIZED)
            return

        await self.channel_layer.group_add(DRIVERS_GROUP, self.channel_name)
        self.joined = True
        await self.accept()

        await self.send_json({
            'type': 'connection_established',
            'message': 'Connecté en tant que chauffeur. Nouvelles commandes en direct.',
        })

        logger.info(f"[WS] Driver {user.email} connected to dispatch feed")

    async def disconnect(self, close_code):
        if self.joined:
            await self.channel_layer.group_discard(DRIVERS_GROUP, self.channel_name)
            logger.info("[WS] Driver disconnected from dispatch feed")

    async def receive_json(self, content):
        if content.get('type') == 'ping':
            await self.send_json({'type': 'pong'})

    # ============================================
    # Event Handlers
    # ============================================

    async def new_order(self, event):
        await self.send_json({'type': 'new_order', 'order': event['order']})

    async def order_taken(self, event):
        await self.send_json({
            'type': 'order_taken',
            'order_id': event['order_id'],
            'driver_id': event['driver_id'],
        })

    async def order_status(self, event):
        await self.send_json({
            'type': 'order_status',
            'order_id': event['order_id'],
            'status': event['status'],
        })
