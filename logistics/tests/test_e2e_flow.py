"""
E2E Tests for the KwiiGo Delivery Flow

Tests the complete flow: registration → quote → order → acceptance →
chat → delivery → commission → remittance
"""

from decimal import Decimal
from unittest.mock import patch

from django.test import TransactionTestCase
from rest_framework.test import APIClient

from core.models import User, UserRole, City
from finance.models import Transaction, TransactionType
from logistics.models import ChatMessage, Order, OrderStatus

PASSWORD = 'Kw1iGo-Yaounde-2026'


class E2EDeliveryFlowTest(TransactionTestCase):
    """
    End-to-end tests for the complete order lifecycle over the API.
    """

    def setUp(self):
        self.api = APIClient()
        self.admin = User.objects.create_user(
            email='admin@kwiigo.cm',
            password=PASSWORD,
            full_name='Admin KwiiGo',
            role=UserRole.ADMIN,
        )

    def register(self, email, role, phone):
        response = self.api.post('/api/auth/register/', {
            'email': email,
            'password': PASSWORD,
            'confirm_password': PASSWORD,
            'full_name': email.split('@')[0].title(),
            'phone_number': phone,
            'role': role,
            'city': City.YAOUNDE,
        }, format='json')
        self.assertEqual(response.status_code, 201, response.data)

        response = self.api.post('/api/auth/token/', {
            'email': email, 'password': PASSWORD,
        }, format='json')
        self.assertEqual(response.status_code, 200)
        return response.data['access']

    def as_user(self, token):
        self.api.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

    @patch('logistics.events._send_group_event')
    def test_full_delivery_flow(self, mock_send):
        """
        Flow: Register → Quote → Create → Accept → Chat → Start →
        Complete → Commission debited → Admin records remittance
        """
        client_token = self.register('client@kwiigo.cm', UserRole.CLIENT, '677000001')
        driver_token = self.register('driver@kwiigo.cm', UserRole.DRIVER, '699000002')

        # 1. QUOTE (public)
        self.api.credentials()
        quote = self.api.post('/api/quote/', {
            'from_city': City.YAOUNDE, 'to_city': City.DOUALA, 'weight_kg': '6', 'fragile': True,
        }, format='json').data
        self.assertEqual(Decimal(quote['total']), Decimal('9500'))

        # 2. CREATE ORDER
        self.as_user(client_token)
        response = self.api.post('/api/orders/', {
            'from_city': City.YAOUNDE,
            'to_city': City.DOUALA,
            'pickup_address': 'Mvan, près du marché',
            'delivery_address': 'Bonapriso, rue Njo-Njo',
            'description': 'Pagnes et tissus',
            'weight_kg': '6',
            'fragile': True,
            'recipient_name': 'Marie Ngo',
            'recipient_phone': '+237 690 11 22 33',
        }, format='json')
        self.assertEqual(response.status_code, 201)
        order_id = response.data['id']
        self.assertEqual(Decimal(response.data['price']), Decimal(quote['total']))
        self.assertEqual(Decimal(response.data['platform_fee']), Decimal('1425'))

        # New order announced to drivers after commit
        events = [call.args[1]['type'] for call in mock_send.call_args_list]
        self.assertIn('new_order', events)

        # 3. DRIVER SEES AND ACCEPTS
        self.as_user(driver_token)
        available = self.api.get('/api/orders/available/').data
        self.assertEqual([o['id'] for o in available['results']], [order_id])

        response = self.api.post(f'/api/orders/{order_id}/accept/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['driver_name'], 'Driver')
        self.assertEqual(self.api.get('/api/orders/available/').data['count'], 0)

        # 4. CHAT
        response = self.api.post(
            f'/api/orders/{order_id}/messages/', {'message': 'Je passe à 14h'}, format='json'
        )
        self.assertEqual(response.status_code, 201)

        self.as_user(client_token)
        self.assertEqual(self.api.get(f'/api/orders/{order_id}/unread/').data['unread'], 1)
        self.api.post(f'/api/orders/{order_id}/messages/', {'message': 'Parfait'}, format='json')

        # 5. START + COMPLETE
        self.as_user(driver_token)
        self.assertEqual(self.api.post(f'/api/orders/{order_id}/start/').status_code, 200)
        response = self.api.post(f'/api/orders/{order_id}/complete/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['status'], OrderStatus.COMPLETED)

        # Chat history gone, chat closed broadcast
        self.assertEqual(ChatMessage.objects.filter(order_id=order_id).count(), 0)
        events = [call.args[1]['type'] for call in mock_send.call_args_list]
        self.assertIn('chat_closed', events)

        # 6. COMMISSION DEBITED (cash paid to driver)
        wallet = self.api.get('/api/wallet/').data
        self.assertEqual(Decimal(wallet['balance']), Decimal('-1425.00'))
        self.assertEqual(Decimal(wallet['commission_owed']), Decimal('1425.00'))
        self.assertEqual(Decimal(wallet['total_earned']), Decimal('8075.00'))

        # 7. ADMIN RECORDS REMITTANCE
        driver = User.objects.get(email='driver@kwiigo.cm')
        self.api.force_authenticate(self.admin)
        response = self.api.post('/api/wallet/remittance/', {
            'driver_id': str(driver.id), 'amount': '1425',
        }, format='json')
        self.assertEqual(response.status_code, 201)
        self.api.force_authenticate(None)

        driver.refresh_from_db()
        self.assertEqual(driver.wallet_balance, Decimal('0.00'))
        self.assertEqual(
            list(Transaction.objects.filter(user=driver).order_by('created_at')
                 .values_list('transaction_type', flat=True)),
            [TransactionType.COMMISSION, TransactionType.REMITTANCE]
        )

        # 8. CLIENT DASHBOARD
        self.as_user(client_token)
        stats = self.api.get('/api/dashboard/').data['stats']
        self.assertEqual(stats['completed'], 1)
        self.assertEqual(Decimal(stats['total_spent']), Decimal('9500'))

    @patch('logistics.events._send_group_event')
    def test_cancelled_order_never_reaches_a_driver(self, mock_send):
        client_token = self.register('client@kwiigo.cm', UserRole.CLIENT, '677000001')
        driver_token = self.register('driver@kwiigo.cm', UserRole.DRIVER, '699000002')

        self.as_user(client_token)
        response = self.api.post('/api/orders/', {
            'from_city': City.BAFOUSSAM,
            'to_city': City.YAOUNDE,
            'pickup_address': 'Marché A',
            'delivery_address': 'Mokolo',
            'description': 'Sac de café',
            'weight_kg': '10',
            'recipient_name': 'Jean',
            'recipient_phone': '699887766',
        }, format='json')
        order_id = response.data['id']
        self.assertEqual(Decimal(response.data['price']), Decimal('8000'))

        self.assertEqual(self.api.post(f'/api/orders/{order_id}/cancel/').status_code, 200)

        self.as_user(driver_token)
        self.assertEqual(self.api.post(f'/api/orders/{order_id}/accept/').status_code, 409)
        self.assertEqual(Order.objects.get(pk=order_id).status, OrderStatus.CANCELLED)
        self.assertFalse(Transaction.objects.exists())
