"""
KwiiGo Finance Tests
====================

Tests for:
1. WalletService (credit, debit, atomic transactions)
2. Commission recording on completed orders
3. Driver remittances
4. Wallet API (driver summary, admin remittance)
"""

from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from core.models import User, UserRole, City
from logistics.models import Order, OrderStatus
from finance.models import Transaction, TransactionType, WalletService
from finance.services import record_commission, record_remittance, wallet_summary


def make_user(email, role, **extra):
    return User.objects.create_user(
        email=email,
        password='testpass123',
        full_name=email.split('@')[0].title(),
        role=role,
        city=City.YAOUNDE,
        **extra
    )


def make_completed_order(client, driver, price, fee):
    return Order.objects.create(
        client=client,
        driver=driver,
        status=OrderStatus.COMPLETED,
        from_city=City.YAOUNDE,
        to_city=City.DOUALA,
        pickup_address='Rue 1',
        delivery_address='Rue 2',
        description='Colis',
        weight_kg=Decimal('2.00'),
        recipient_name='Ami',
        recipient_phone='+237677000000',
        price=price,
        platform_fee=fee,
        driver_earning=price - fee,
    )


class TestWalletService(TestCase):
    """Tests for WalletService credit/debit operations."""

    def setUp(self):
        self.driver = make_user('driver@test.cm', UserRole.DRIVER)

    # ==========================================
    # Credit Operations
    # ==========================================

    def test_credit_increases_balance(self):
        WalletService.credit(self.driver, Decimal('1000.00'), TransactionType.REMITTANCE)
        self.driver.refresh_from_db()
        self.assertEqual(self.driver.wallet_balance, Decimal('1000.00'))

    def test_credit_creates_transaction_record(self):
        tx = WalletService.credit(
            self.driver, Decimal('500.00'), TransactionType.REMITTANCE,
            description='Test'
        )
        self.assertEqual(tx.amount, Decimal('500.00'))
        self.assertEqual(tx.balance_before, Decimal('0.00'))
        self.assertEqual(tx.balance_after, Decimal('500.00'))
        self.assertEqual(tx.transaction_type, TransactionType.REMITTANCE)

    def test_credit_zero_amount_rejected(self):
        with self.assertRaises(ValueError):
            WalletService.credit(self.driver, Decimal('0'), TransactionType.REMITTANCE)

    # ==========================================
    # Debit Operations
    # ==========================================

    def test_debit_allows_negative_for_drivers(self):
        tx = WalletService.debit(
            self.driver, Decimal('750.00'), TransactionType.COMMISSION,
            allow_negative=True
        )
        self.driver.refresh_from_db()
        self.assertEqual(self.driver.wallet_balance, Decimal('-750.00'))
        self.assertEqual(tx.amount, Decimal('-750.00'))

    def test_debit_rejects_insufficient_funds_when_not_allowed(self):
        with self.assertRaises(ValueError):
            WalletService.debit(self.driver, Decimal('100.00'), TransactionType.COMMISSION)
        self.assertEqual(Transaction.objects.count(), 0)


class TestCommission(TestCase):
    """Commission debits accumulate as driver debt."""

    def setUp(self):
        self.client_user = make_user('client@test.cm', UserRole.CLIENT)
        self.driver = make_user('driver@test.cm', UserRole.DRIVER)

    def test_record_commission_debits_platform_fee(self):
        order = make_completed_order(self.client_user, self.driver, Decimal('8000'), Decimal('1200'))
        tx = record_commission(order)

        self.driver.refresh_from_db()
        self.assertEqual(self.driver.wallet_balance, Decimal('-1200.00'))
        self.assertEqual(self.driver.commission_owed, Decimal('1200.00'))
        self.assertEqual(tx.order, order)
        self.assertEqual(tx.transaction_type, TransactionType.COMMISSION)

    def test_debt_accumulates_over_orders(self):
        for _ in range(3):
            order = make_completed_order(self.client_user, self.driver, Decimal('6000'), Decimal('900'))
            record_commission(order)

        self.driver.refresh_from_db()
        self.assertEqual(self.driver.wallet_balance, Decimal('-2700.00'))

    def test_remittance_settles_debt(self):
        order = make_completed_order(self.client_user, self.driver, Decimal('6000'), Decimal('900'))
        record_commission(order)
        record_remittance(self.driver, Decimal('900'))

        self.driver.refresh_from_db()
        self.assertEqual(self.driver.wallet_balance, Decimal('0.00'))
        self.assertEqual(self.driver.commission_owed, Decimal('0.00'))

    def test_remittance_rejected_for_clients(self):
        with self.assertRaises(ValueError):
            record_remittance(self.client_user, Decimal('500'))

    def test_wallet_summary_totals(self):
        for price, fee in ((Decimal('6000'), Decimal('900')), (Decimal('8000'), Decimal('1200'))):
            record_commission(make_completed_order(self.client_user, self.driver, price, fee))

        summary = wallet_summary(self.driver)
        self.assertEqual(summary['total_earned'], Decimal('11900'))
        self.assertEqual(summary['total_commission'], Decimal('2100'))
        self.assertEqual(summary['commission_owed'], Decimal('2100.00'))
        self.assertEqual(summary['completed_orders'], 2)


class TestWalletAPI(APITestCase):

    def setUp(self):
        self.client_user = make_user('client@test.cm', UserRole.CLIENT)
        self.driver = make_user('driver@test.cm', UserRole.DRIVER)
        self.admin = make_user('admin@test.cm', UserRole.ADMIN)

    def test_driver_sees_wallet(self):
        record_commission(make_completed_order(self.client_user, self.driver, Decimal('6000'), Decimal('900')))
        self.client.force_authenticate(self.driver)

        response = self.client.get('/api/wallet/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['balance']), Decimal('-900'))
        self.assertEqual(Decimal(response.data['commission_owed']), Decimal('900'))
        self.assertEqual(len(response.data['history']), 1)

    def test_client_cannot_see_wallet(self):
        self.client.force_authenticate(self.client_user)
        response = self.client.get('/api/wallet/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_records_remittance(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post('/api/wallet/remittance/', {
            'driver_id': str(self.driver.id),
            'amount': '1500',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.driver.refresh_from_db()
        self.assertEqual(self.driver.wallet_balance, Decimal('1500.00'))

    def test_driver_cannot_record_remittance(self):
        self.client.force_authenticate(self.driver)
        response = self.client.post('/api/wallet/remittance/', {
            'driver_id': str(self.driver.id),
            'amount': '1500',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_remittance_unknown_driver(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post('/api/wallet/remittance/', {
            'driver_id': str(self.client_user.id),
            'amount': '1500',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_transactions_scoped_to_user(self):
        record_remittance(self.driver, Decimal('500'))
        self.client.force_authenticate(self.client_user)

        response = self.client.get('/api/transactions/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 0)
