"""
ASSISTANT App - Tests for keyword replies per role.
"""

from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from core.models import User, UserRole, City
from logistics.models import Order, OrderStatus
from .services import AssistantService


def make_user(email, role, **extra):
    return User.objects.create_user(
        email=email, password='testpass123', full_name=email.split('@')[0].title(),
        role=role, city=City.DOUALA, **extra
    )


def make_order(client, status=OrderStatus.PENDING, driver=None):
    return Order.objects.create(
        client=client,
        driver=driver,
        status=status,
        from_city=City.DOUALA,
        to_city=City.YAOUNDE,
        pickup_address='Akwa',
        delivery_address='Bastos',
        description='Carton de livres',
        weight_kg=Decimal('2.00'),
        recipient_name='Paul',
        recipient_phone='+237690000000',
        price=Decimal('6000'),
        platform_fee=Decimal('900'),
        driver_earning=Decimal('5100'),
    )


class TestDriverAssistant(TestCase):

    def setUp(self):
        self.client_user = make_user('client@test.cm', UserRole.CLIENT)
        self.driver = make_user('driver@test.cm', UserRole.DRIVER)

    def test_earnings_sum_completed_orders(self):
        make_order(self.client_user, OrderStatus.COMPLETED, self.driver)
        make_order(self.client_user, OrderStatus.COMPLETED, self.driver)
        make_order(self.client_user, OrderStatus.ACCEPTED, self.driver)

        intent, reply = AssistantService.reply(self.driver, "Quels sont mes GAINS ?")

        self.assertEqual(intent, 'earnings')
        self.assertIn('10 200 FCFA', reply)
        self.assertIn('2 livraison(s)', reply)

    def test_deliveries_lists_active_assignments(self):
        make_order(self.client_user, OrderStatus.IN_PROGRESS, self.driver)
        make_order(self.client_user, OrderStatus.COMPLETED, self.driver)

        intent, reply = AssistantService.reply(self.driver, "mes missions")

        self.assertEqual(intent, 'deliveries')
        self.assertEqual(reply.count('- Commande'), 1)
        self.assertIn('Bastos', reply)

    def test_no_deliveries(self):
        _, reply = AssistantService.reply(self.driver, "livraisons")
        self.assertIn("pas de livraisons en cours", reply)

    def test_commission_owed(self):
        self.driver.wallet_balance = Decimal('-1800.00')
        self.driver.save()

        intent, reply = AssistantService.reply(self.driver, "ma commission")

        self.assertEqual(intent, 'commission')
        self.assertIn('1 800 FCFA', reply)

    def test_unknown_message_returns_help(self):
        intent, reply = AssistantService.reply(self.driver, "bonjour")
        self.assertEqual(intent, 'help')
        self.assertIn('gains', reply)

    def test_empty_message_rejected(self):
        with self.assertRaises(ValueError):
            AssistantService.reply(self.driver, "   ")


class TestClientAssistant(TestCase):

    def setUp(self):
        self.client_user = make_user('client@test.cm', UserRole.CLIENT)

    def test_tracking_lists_latest_orders(self):
        for _ in range(7):
            make_order(self.client_user)

        intent, reply = AssistantService.reply(self.client_user, "suivi de ma commande")

        self.assertEqual(intent, 'tracking')
        self.assertEqual(reply.count('- Commande'), 5)
        self.assertIn('En attente', reply)

    def test_pricing_grid(self):
        intent, reply = AssistantService.reply(self.client_user, "Quel est le prix ?")

        self.assertEqual(intent, 'pricing')
        self.assertIn('500 FCFA par kg', reply)
        self.assertIn('Yaoundé ↔ Douala : 5 000 FCFA', reply)
        self.assertIn('+3 000 FCFA', reply)

    def test_driver_keywords_not_for_clients(self):
        intent, _ = AssistantService.reply(self.client_user, "mes gains")
        self.assertEqual(intent, 'help')


class TestAssistantAPI(APITestCase):

    def setUp(self):
        self.admin = make_user('admin@test.cm', UserRole.ADMIN, is_staff=True)

    def test_requires_auth(self):
        response = self.client.post('/api/assistant/chat/', {'message': 'stats'})
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_admin_stats(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post('/api/assistant/chat/', {'message': 'stats'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['intent'], 'stats')
        self.assertIn('1 utilisateurs', response.data['reply'])

    def test_empty_message(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post('/api/assistant/chat/', {'message': ''}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
