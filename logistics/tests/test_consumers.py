"""
WebSocket tests for the order chat and the driver dispatch feed.
"""

import pytest
from asgiref.sync import sync_to_async
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from rest_framework_simplejwt.tokens import AccessToken

from core.models import UserRole
from logistics.consumers import CLOSE_CHAT_INACTIVE, CLOSE_NOT_FOUND, CLOSE_UNAUTHORIZED
from logistics.middleware import JWTAuthMiddleware
from logistics.models import ChatMessage, OrderStatus
from logistics.routing import websocket_urlpatterns
from logistics.services import lifecycle
from .helpers import make_order, make_user, order_payload

application = JWTAuthMiddleware(URLRouter(websocket_urlpatterns))

pytestmark = [pytest.mark.asyncio, pytest.mark.django_db(transaction=True)]


def token_for(user):
    return str(AccessToken.for_user(user))


def chat_path(order, user=None):
    path = f'/ws/orders/{order.id}/chat/'
    if user is not None:
        path += f'?token={token_for(user)}'
    return path


@sync_to_async
def setup_parties(status=OrderStatus.ACCEPTED):
    client = make_user('client@test.cm')
    driver = make_user('driver@test.cm', UserRole.DRIVER)
    order = make_order(client, status, driver if status != OrderStatus.PENDING else None)
    return client, driver, order


async def connect(path):
    communicator = WebsocketCommunicator(application, path)
    connected, code = await communicator.connect()
    return communicator, connected, code


# ============================================
# Order chat
# ============================================

async def test_chat_requires_token():
    _, _, order = await setup_parties()

    communicator, connected, code = await connect(chat_path(order))

    assert not connected
    assert code == CLOSE_UNAUTHORIZED


async def test_chat_rejects_bad_token():
    _, _, order = await setup_parties()

    communicator, connected, code = await connect(f'/ws/orders/{order.id}/chat/?token=abc')

    assert not connected
    assert code == CLOSE_UNAUTHORIZED


async def test_chat_unknown_order():
    client, _, order = await setup_parties()
    path = chat_path(order, client).replace(str(order.id), '00000000-0000-0000-0000-000000000000')

    communicator, connected, code = await connect(path)

    assert not connected
    assert code == CLOSE_NOT_FOUND


async def test_chat_outsider_rejected():
    _, _, order = await setup_parties()
    outsider = await sync_to_async(make_user)('intrus@test.cm', UserRole.DRIVER)

    communicator, connected, code = await connect(chat_path(order, outsider))

    assert not connected
    assert code == CLOSE_UNAUTHORIZED


async def test_chat_inactive_order_rejected():
    client, _, order = await setup_parties(OrderStatus.PENDING)

    communicator, connected, code = await connect(chat_path(order, client))

    assert not connected
    assert code == CLOSE_CHAT_INACTIVE


async def test_chat_message_reaches_both_parties():
    client, driver, order = await setup_parties()

    client_ws, connected, _ = await connect(chat_path(order, client))
    assert connected
    welcome = await client_ws.receive_json_from()
    assert welcome['type'] == 'connection_established'
    assert welcome['status'] == OrderStatus.ACCEPTED
    assert welcome['unread'] == 0

    driver_ws, connected, _ = await connect(chat_path(order, driver))
    assert connected
    await driver_ws.receive_json_from()

    await client_ws.send_json_to({'type': 'message', 'message': 'Je suis au portail'})

    for ws in (client_ws, driver_ws):
        event = await ws.receive_json_from()
        assert event['type'] == 'chat_message'
        assert event['message']['message'] == 'Je suis au portail'
        assert event['message']['sender_role'] == 'client'

    assert await sync_to_async(ChatMessage.objects.filter(order=order).count)() == 1

    await driver_ws.send_json_to({'type': 'read'})
    for ws in (client_ws, driver_ws):
        event = await ws.receive_json_from()
        assert event['type'] == 'messages_read'
        assert event['count'] == 1
        assert event['reader_id'] == str(driver.id)

    await client_ws.disconnect()
    await driver_ws.disconnect()


async def test_chat_ping_and_errors():
    client, _, order = await setup_parties()
    ws, connected, _ = await connect(chat_path(order, client))
    assert connected
    await ws.receive_json_from()

    await ws.send_json_to({'type': 'ping'})
    assert await ws.receive_json_from() == {'type': 'pong'}

    await ws.send_json_to({'type': 'message', 'message': '   '})
    error = await ws.receive_json_from()
    assert error['type'] == 'error'

    await ws.send_json_to({'type': 'danse'})
    error = await ws.receive_json_from()
    assert error['type'] == 'error'
    assert 'danse' in error['error']

    await ws.disconnect()


async def test_completion_closes_chat():
    client, driver, order = await setup_parties()
    ws, connected, _ = await connect(chat_path(order, client))
    assert connected
    await ws.receive_json_from()

    await sync_to_async(lifecycle.complete_order)(order, driver)

    status_event = await ws.receive_json_from()
    assert status_event['type'] == 'order_status'
    assert status_event['status'] == OrderStatus.COMPLETED

    closed = await ws.receive_json_from()
    assert closed == {'type': 'chat_closed', 'order_id': str(order.id)}

    output = await ws.receive_output()
    assert output['type'] == 'websocket.close'
    assert output['code'] == CLOSE_CHAT_INACTIVE


# ============================================
# Driver dispatch feed
# ============================================

async def test_feed_is_for_drivers_only():
    client, _, _ = await setup_parties()

    communicator, connected, code = await connect(f'/ws/drivers/?token={token_for(client)}')

    assert not connected
    assert code == CLOSE_UNAUTHORIZED


async def test_feed_receives_new_and_taken_orders():
    client, driver, _ = await setup_parties()
    other = await sync_to_async(make_user)('driver2@test.cm', UserRole.DRIVER)

    ws, connected, _ = await connect(f'/ws/drivers/?token={token_for(other)}')
    assert connected
    assert (await ws.receive_json_from())['type'] == 'connection_established'

    order = await sync_to_async(lifecycle.create_order)(client, **order_payload())

    new_order = await ws.receive_json_from()
    assert new_order['type'] == 'new_order'
    assert new_order['order']['id'] == str(order.id)

    await sync_to_async(lifecycle.accept_order)(order, driver)

    status_event = await ws.receive_json_from()
    assert status_event == {
        'type': 'order_status',
        'order_id': str(order.id),
        'status': OrderStatus.ACCEPTED,
    }
    taken = await ws.receive_json_from()
    assert taken == {
        'type': 'order_taken',
        'order_id': str(order.id),
        'driver_id': str(driver.id),
    }

    await ws.disconnect()
