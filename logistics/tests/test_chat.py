"""
Tests for the order chat service.
"""

from django.test import TestCase, override_settings

from core.models import UserRole
from logistics.exceptions import ChatClosed, OrderAccessDenied
from logistics.models import Order, OrderStatus, SenderRole
from logistics.services import chat
from logistics.tasks import purge_closed_chats
from .helpers import make_order, make_user


class ChatServiceTest(TestCase):

    def setUp(self):
        self.client_user = make_user('client@test.cm')
        self.driver = make_user('driver@test.cm', UserRole.DRIVER)
        self.outsider = make_user('intrus@test.cm', UserRole.DRIVER)
        self.admin = make_user('admin@test.cm', UserRole.ADMIN)
        self.order = make_order(self.client_user, OrderStatus.ACCEPTED, self.driver)

    def test_participants_can_send(self):
        first = chat.send_message(self.order, self.client_user, '  Bonjour, où êtes-vous ?  ')
        second = chat.send_message(self.order, self.driver, 'Au carrefour Bastos')

        self.assertEqual(first.sender_role, SenderRole.CLIENT)
        self.assertEqual(first.message, 'Bonjour, où êtes-vous ?')
        self.assertFalse(first.read)
        self.assertEqual(second.sender_role, SenderRole.DRIVER)

    def test_outsider_cannot_send(self):
        with self.assertRaises(OrderAccessDenied):
            chat.send_message(self.order, self.outsider, 'Salut')

    def test_admin_reads_but_does_not_send(self):
        chat.send_message(self.order, self.client_user, 'Bonjour')

        self.assertEqual(chat.list_messages(self.order, self.admin).count(), 1)
        with self.assertRaises(OrderAccessDenied):
            chat.send_message(self.order, self.admin, 'Ici le support')

    def test_empty_message_rejected(self):
        with self.assertRaises(ValueError):
            chat.send_message(self.order, self.client_user, '   ')

    @override_settings(CHAT_MAX_MESSAGE_LENGTH=10)
    def test_too_long_message_rejected(self):
        with self.assertRaisesMessage(ValueError, '10 caractères'):
            chat.send_message(self.order, self.client_user, 'x' * 11)

    def test_chat_closed_on_pending_order(self):
        pending = make_order(self.client_user)

        with self.assertRaises(ChatClosed):
            chat.send_message(pending, self.client_user, 'Bonjour')
        with self.assertRaises(ChatClosed):
            chat.list_messages(pending, self.client_user)

    def test_chat_closed_on_completed_order(self):
        done = make_order(self.client_user, OrderStatus.COMPLETED, self.driver)
        self.assertFalse(chat.can_chat(done))
        with self.assertRaises(ChatClosed):
            chat.send_message(done, self.driver, 'Merci')

    def test_list_is_oldest_first(self):
        chat.send_message(self.order, self.client_user, 'un')
        chat.send_message(self.order, self.driver, 'deux')
        chat.send_message(self.order, self.client_user, 'trois')

        texts = [m.message for m in chat.list_messages(self.order, self.driver)]
        self.assertEqual(texts, ['un', 'deux', 'trois'])

    def test_outsider_cannot_list(self):
        with self.assertRaises(OrderAccessDenied):
            chat.list_messages(self.order, self.outsider)

    def test_mark_as_read_only_touches_other_party(self):
        chat.send_message(self.order, self.client_user, 'un')
        chat.send_message(self.order, self.client_user, 'deux')
        chat.send_message(self.order, self.driver, 'trois')

        self.assertEqual(chat.unread_count(self.order, self.driver), 2)
        self.assertEqual(chat.mark_as_read(self.order, self.driver), 2)
        self.assertEqual(chat.unread_count(self.order, self.driver), 0)

        # the driver's own message is still unread for the client
        self.assertEqual(chat.unread_count(self.order, self.client_user), 1)
        self.assertEqual(chat.mark_as_read(self.order, self.driver), 0)

    def test_delete_messages(self):
        chat.send_message(self.order, self.client_user, 'un')
        chat.send_message(self.order, self.driver, 'deux')

        self.assertEqual(chat.delete_messages(self.order), 2)
        self.assertFalse(self.order.messages.exists())


class PurgeClosedChatsTaskTest(TestCase):

    def setUp(self):
        self.client_user = make_user('client@test.cm')
        self.driver = make_user('driver@test.cm', UserRole.DRIVER)

    def test_purges_only_inactive_orders(self):
        active = make_order(self.client_user, OrderStatus.IN_PROGRESS, self.driver)
        leftover = make_order(self.client_user, OrderStatus.ACCEPTED, self.driver)
        chat.send_message(active, self.client_user, 'toujours là')
        chat.send_message(leftover, self.client_user, 'oublié')
        chat.send_message(leftover, self.driver, 'oublié aussi')

        # status changed outside the lifecycle, messages left behind
        Order.objects.filter(pk=leftover.pk).update(status=OrderStatus.COMPLETED)

        self.assertEqual(purge_closed_chats.delay().get(), 2)
        self.assertEqual(active.messages.count(), 1)
        self.assertEqual(leftover.messages.count(), 0)
