"""
Tests for the order status machine and its side effects.
"""

import uuid
from decimal import Decimal
from unittest.mock import patch

from django.db import IntegrityError, transaction
from django.test import TestCase

from core.models import UserRole
from finance.models import Transaction, TransactionType
from logistics.exceptions import InvalidTransition, OrderAccessDenied, OrderNotFound
from logistics.models import ChatMessage, Order, OrderStatus, SenderRole
from logistics.services import lifecycle
from .helpers import make_order, make_user, order_payload


class OrderCreationTest(TestCase):

    def setUp(self):
        self.client_user = make_user('client@test.cm')
        self.driver = make_user('driver@test.cm', UserRole.DRIVER)

    def test_create_freezes_price(self):
        order = lifecycle.create_order(self.client_user, **order_payload(urgent=True))

        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertIsNone(order.driver)
        self.assertEqual(order.price, Decimal('9000'))
        self.assertEqual(order.platform_fee, Decimal('1350'))
        self.assertEqual(order.driver_earning, Decimal('7650'))

    def test_only_clients_create(self):
        with self.assertRaises(OrderAccessDenied):
            lifecycle.create_order(self.driver, **order_payload())

    def test_invalid_weight(self):
        with self.assertRaises(ValueError):
            lifecycle.create_order(self.client_user, **order_payload(weight_kg=Decimal('0')))
        self.assertEqual(Order.objects.count(), 0)

    def test_get_order_not_found(self):
        with self.assertRaises(OrderNotFound):
            lifecycle.get_order(uuid.uuid4())
        with self.assertRaises(OrderNotFound):
            lifecycle.get_order('pas-un-uuid')


class OrderTransitionTest(TestCase):

    def setUp(self):
        self.client_user = make_user('client@test.cm')
        self.other_client = make_user('autre@test.cm')
        self.driver = make_user('driver@test.cm', UserRole.DRIVER)
        self.other_driver = make_user('driver2@test.cm', UserRole.DRIVER)
        self.admin = make_user('admin@test.cm', UserRole.ADMIN)
        self.order = lifecycle.create_order(self.client_user, **order_payload())

    # ==========================================
    # Accept
    # ==========================================

    def test_accept(self):
        order = lifecycle.accept_order(self.order, self.driver)

        self.assertEqual(order.status, OrderStatus.ACCEPTED)
        self.assertEqual(order.driver, self.driver)
        self.assertIsNotNone(order.accepted_at)

    def test_second_driver_loses_the_race(self):
        lifecycle.accept_order(self.order, self.driver)

        with self.assertRaisesMessage(InvalidTransition, "n'est plus disponible"):
            lifecycle.accept_order(self.order, self.other_driver)

        self.order.refresh_from_db()
        self.assertEqual(self.order.driver, self.driver)

    def test_stale_instance_cannot_double_accept(self):
        stale = Order.objects.get(pk=self.order.pk)
        lifecycle.accept_order(self.order, self.driver)

        # stale still says pending; the locked re-read must win
        self.assertEqual(stale.status, OrderStatus.PENDING)
        with self.assertRaises(InvalidTransition):
            lifecycle.accept_order(stale, self.other_driver)

    def test_client_cannot_accept(self):
        with self.assertRaises(OrderAccessDenied):
            lifecycle.accept_order(self.order, self.client_user)

    def test_inactive_driver_cannot_accept(self):
        self.driver.is_active = False
        self.driver.save()
        with self.assertRaises(OrderAccessDenied):
            lifecycle.accept_order(self.order, self.driver)

    # ==========================================
    # Start / Complete
    # ==========================================

    def test_start_requires_accepted(self):
        with self.assertRaises(OrderAccessDenied):
            lifecycle.start_order(self.order, self.driver)

        lifecycle.accept_order(self.order, self.driver)
        order = lifecycle.start_order(self.order, self.driver)
        self.assertEqual(order.status, OrderStatus.IN_PROGRESS)
        self.assertIsNotNone(order.started_at)

        with self.assertRaises(InvalidTransition):
            lifecycle.start_order(self.order, self.driver)

    def test_only_assigned_driver_starts(self):
        lifecycle.accept_order(self.order, self.driver)
        with self.assertRaises(OrderAccessDenied):
            lifecycle.start_order(self.order, self.other_driver)

    def test_complete_directly_from_accepted(self):
        lifecycle.accept_order(self.order, self.driver)
        order = lifecycle.complete_order(self.order, self.driver)

        self.assertEqual(order.status, OrderStatus.COMPLETED)
        self.assertIsNotNone(order.completed_at)

    def test_complete_deletes_chat_and_debits_commission(self):
        lifecycle.accept_order(self.order, self.driver)
        lifecycle.start_order(self.order, self.driver)
        ChatMessage.objects.create(
            order=self.order, sender=self.client_user,
            sender_role=SenderRole.CLIENT, message='Je suis devant la porte'
        )

        lifecycle.complete_order(self.order, self.driver)

        self.assertFalse(ChatMessage.objects.filter(order=self.order).exists())
        self.driver.refresh_from_db()
        self.assertEqual(self.driver.wallet_balance, Decimal('-900.00'))
        self.assertEqual(self.driver.commission_owed, Decimal('900.00'))
        tx = Transaction.objects.get(user=self.driver)
        self.assertEqual(tx.transaction_type, TransactionType.COMMISSION)
        self.assertEqual(tx.order, self.order)

    def test_completed_is_terminal(self):
        lifecycle.accept_order(self.order, self.driver)
        lifecycle.complete_order(self.order, self.driver)

        with self.assertRaises(InvalidTransition):
            lifecycle.complete_order(self.order, self.driver)
        with self.assertRaises(InvalidTransition):
            lifecycle.cancel_order(self.order, self.admin)
        self.assertEqual(Transaction.objects.filter(user=self.driver).count(), 1)

    def test_cannot_complete_pending(self):
        with self.assertRaises(OrderAccessDenied):
            lifecycle.complete_order(self.order, self.driver)

    # ==========================================
    # Cancel
    # ==========================================

    def test_client_cancels_pending(self):
        order = lifecycle.cancel_order(self.order, self.client_user)
        self.assertEqual(order.status, OrderStatus.CANCELLED)
        self.assertIsNotNone(order.cancelled_at)

    def test_admin_cancels(self):
        order = lifecycle.cancel_order(self.order, self.admin)
        self.assertEqual(order.status, OrderStatus.CANCELLED)

    def test_other_client_cannot_cancel(self):
        with self.assertRaises(OrderAccessDenied):
            lifecycle.cancel_order(self.order, self.other_client)

    def test_accepted_order_cannot_be_cancelled(self):
        lifecycle.accept_order(self.order, self.driver)
        with self.assertRaises(InvalidTransition):
            lifecycle.cancel_order(self.order, self.client_user)

    def test_cancelled_cannot_be_accepted(self):
        lifecycle.cancel_order(self.order, self.client_user)
        with self.assertRaises(InvalidTransition):
            lifecycle.accept_order(self.order, self.driver)

    # ==========================================
    # Generic transition
    # ==========================================

    def test_transition_dispatches_by_target(self):
        order = lifecycle.transition(self.order, OrderStatus.ACCEPTED, self.driver)
        self.assertEqual(order.status, OrderStatus.ACCEPTED)

        order = lifecycle.transition(order, OrderStatus.IN_PROGRESS, self.driver)
        self.assertEqual(order.status, OrderStatus.IN_PROGRESS)

    def test_transition_back_to_pending_refused(self):
        with self.assertRaises(InvalidTransition):
            lifecycle.transition(self.order, OrderStatus.PENDING, self.admin)


class DriverStatusConstraintTest(TestCase):

    def setUp(self):
        self.client_user = make_user('client@test.cm')
        self.driver = make_user('driver@test.cm', UserRole.DRIVER)

    def test_accepted_without_driver_rejected(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                make_order(self.client_user, OrderStatus.ACCEPTED)

    def test_pending_with_driver_rejected(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                make_order(self.client_user, OrderStatus.PENDING, self.driver)

    def test_valid_combinations(self):
        make_order(self.client_user, OrderStatus.PENDING)
        make_order(self.client_user, OrderStatus.CANCELLED)
        make_order(self.client_user, OrderStatus.IN_PROGRESS, self.driver)
        make_order(self.client_user, OrderStatus.COMPLETED, self.driver)
        self.assertEqual(Order.objects.count(), 4)


class OrderVisibilityTest(TestCase):

    def setUp(self):
        self.client_user = make_user('client@test.cm')
        self.other_client = make_user('autre@test.cm')
        self.driver = make_user('driver@test.cm', UserRole.DRIVER)
        self.other_driver = make_user('driver2@test.cm', UserRole.DRIVER)
        self.admin = make_user('admin@test.cm', UserRole.ADMIN)

        self.pending = make_order(self.client_user)
        self.mine = make_order(self.client_user, OrderStatus.ACCEPTED, self.driver)
        self.theirs = make_order(self.other_client, OrderStatus.ACCEPTED, self.other_driver)

    def test_client_sees_own_orders(self):
        self.assertEqual(
            set(lifecycle.visible_orders(self.client_user)),
            {self.pending, self.mine}
        )

    def test_driver_sees_pending_and_assigned(self):
        self.assertEqual(
            set(lifecycle.visible_orders(self.driver)),
            {self.pending, self.mine}
        )

    def test_admin_sees_everything(self):
        self.assertEqual(lifecycle.visible_orders(self.admin).count(), 3)

    def test_available_orders(self):
        self.assertEqual(list(lifecycle.available_orders()), [self.pending])


class OrderSignalsTest(TestCase):

    def setUp(self):
        self.client_user = make_user('client@test.cm')
        self.driver = make_user('driver@test.cm', UserRole.DRIVER)

    @patch('logistics.events.broadcast_new_order')
    def test_new_order_broadcast_after_commit(self, mock_broadcast):
        with self.captureOnCommitCallbacks(execute=True):
            order = lifecycle.create_order(self.client_user, **order_payload())

        mock_broadcast.assert_called_once()
        payload = mock_broadcast.call_args[0][0]
        self.assertEqual(payload['id'], str(order.id))
        self.assertEqual(payload['status'], OrderStatus.PENDING)

    @patch('logistics.events.broadcast_chat_closed')
    @patch('logistics.events.broadcast_order_taken')
    @patch('logistics.events.broadcast_order_status')
    def test_status_changes_broadcast(self, mock_status, mock_taken, mock_closed):
        order = make_order(self.client_user)

        with self.captureOnCommitCallbacks(execute=True):
            lifecycle.accept_order(order, self.driver)
        mock_status.assert_called_once_with(order.id, OrderStatus.ACCEPTED, self.driver.pk)
        mock_taken.assert_called_once_with(order.id, self.driver.pk)

        with self.captureOnCommitCallbacks(execute=True):
            lifecycle.complete_order(order, self.driver)
        mock_closed.assert_called_once_with(order.id)
        self.assertEqual(mock_status.call_count, 2)

    @patch('logistics.events.broadcast_order_status')
    def test_failed_transition_broadcasts_nothing(self, mock_status):
        order = make_order(self.client_user)

        with self.captureOnCommitCallbacks(execute=True):
            lifecycle.accept_order(order, self.driver)
        mock_status.reset_mock()

        with self.captureOnCommitCallbacks(execute=True):
            with self.assertRaises(InvalidTransition):
                lifecycle.cancel_order(order, self.client_user)

        mock_status.assert_not_called()
