"""
LOGISTICS App - WebSocket JWT Authentication

Browsers cannot set an Authorization header on a WebSocket handshake,
so the access token travels in the query string:

    ws://host/ws/orders/<uuid>/chat/?token=<access token>

A valid token replaces scope['user']; otherwise the user set by
AuthMiddlewareStack (session or anonymous) is kept.
"""

import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth import get_user_model
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

logger = logging.getLogger(__name__)


@database_sync_to_async
def get_user_for_token(raw_token: str):
    """Resolve an access token to an active user, or None."""
    try:
        token = AccessToken(raw_token)
    except (InvalidToken, TokenError) as e:
        logger.info(f"[WS] Rejected token: {e}")
        return None

    user_id = token.get(api_settings.USER_ID_CLAIM)
    if user_id is None:
        return None

    User = get_user_model()
    try:
        return User.objects.get(**{api_settings.USER_ID_FIELD: user_id}, is_active=True)
    except User.DoesNotExist:
        return None


class JWTAuthMiddleware(BaseMiddleware):
    """Authenticate WebSocket connections with a `?token=` access token."""

    async def __call__(self, scope, receive, send):
        query = parse_qs(scope.get('query_string', b'').decode())
        raw_token = (query.get('token') or [None])[0]

        if raw_token:
            user = await get_user_for_token(raw_token)
            if user is not None:
                scope = dict(scope, user=user)

        return await super().__call__(scope, receive, send)
