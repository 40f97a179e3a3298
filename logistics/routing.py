"""
LOGISTICS App - WebSocket Routing Configuration

Maps WebSocket URLs to consumers for chat and dispatch.
"""

from django.urls import re_path
from . import consumers


websocket_urlpatterns = [
    # Chat of a specific order
    # ws://localhost:8000/ws/orders/<uuid>/chat/
    re_path(
        r'ws/orders/(?P<order_id>[0-9a-f-]+)/chat/$',
        consumers.OrderChatConsumer.as_asgi()
    ),

    # Driver app - receive new orders
    # ws://localhost:8000/ws/drivers/
    re_path(
        r'ws/drivers/$',
        consumers.DriverFeedConsumer.as_asgi()
    ),
]
