"""
KwiiGo Dashboard Tests
"""

from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from core.models import User, UserRole, City
from logistics.models import Order, OrderStatus
from reports.services import DashboardService


def make_user(email, role):
    return User.objects.create_user(
        email=email, password='testpass123', full_name=email.split('@')[0].title(),
        role=role, city=City.DOUALA,
    )


def make_order(client, status=OrderStatus.PENDING, driver=None, price='7000', fee='1050'):
    return Order.objects.create(
        client=client,
        driver=driver,
        status=status,
        from_city=City.DOUALA,
        to_city=City.YAOUNDE,
        pickup_address='Akwa',
        delivery_address='Bastos',
        description='Documents',
        weight_kg=Decimal('1.00'),
        recipient_name='Paul',
        recipient_phone='+237690000000',
        price=Decimal(price),
        platform_fee=Decimal(fee),
        driver_earning=Decimal(price) - Decimal(fee),
    )


class TestDashboardService(TestCase):

    def setUp(self):
        self.client_user = make_user('client@test.cm', UserRole.CLIENT)
        self.driver = make_user('driver@test.cm', UserRole.DRIVER)
        self.admin = make_user('admin@test.cm', UserRole.ADMIN)

        make_order(self.client_user)
        make_order(self.client_user, OrderStatus.ACCEPTED, self.driver)
        make_order(self.client_user, OrderStatus.IN_PROGRESS, self.driver)
        make_order(self.client_user, OrderStatus.COMPLETED, self.driver, '7000', '1050')
        make_order(self.client_user, OrderStatus.COMPLETED, self.driver, '5000', '750')
        make_order(self.client_user, OrderStatus.CANCELLED)

    def test_admin_stats(self):
        stats = DashboardService.admin_stats()

        self.assertEqual(stats['users']['total'], 3)
        self.assertEqual(stats['users']['drivers'], 1)
        self.assertEqual(stats['orders']['total'], 6)
        self.assertEqual(stats['orders']['pending'], 1)
        self.assertEqual(stats['orders']['in_progress'], 2)
        self.assertEqual(stats['orders']['completed'], 2)
        self.assertEqual(stats['total_revenue'], Decimal('12000'))
        self.assertEqual(stats['total_commission'], Decimal('1800'))

    def test_recent_activities(self):
        activities = DashboardService.recent_activities()

        self.assertEqual(len(activities), 6)
        types = {a['type'] for a in activities}
        self.assertEqual(types, {'order_created', 'order_accepted', 'order_completed', 'order_updated'})
        completed = [a for a in activities if a['type'] == 'order_completed']
        self.assertEqual(completed[0]['user'], self.driver.full_name)

    def test_recent_activities_limited_to_ten(self):
        for _ in range(12):
            make_order(self.client_user)
        self.assertEqual(len(DashboardService.recent_activities()), 10)

    def test_driver_stats(self):
        stats = DashboardService.driver_stats(self.driver)

        self.assertEqual(stats['available'], 1)
        self.assertEqual(stats['active'], 2)
        self.assertEqual(stats['completed'], 2)
        self.assertEqual(stats['total_earnings'], Decimal('10200'))
        self.assertEqual(stats['total_commission'], Decimal('1800'))

    def test_client_stats(self):
        stats = DashboardService.client_stats(self.client_user)

        self.assertEqual(stats['total'], 6)
        self.assertEqual(stats['pending'], 1)
        self.assertEqual(stats['active'], 2)
        self.assertEqual(stats['completed'], 2)
        self.assertEqual(stats['total_spent'], Decimal('12000'))


class TestDashboardAPI(APITestCase):

    def setUp(self):
        self.client_user = make_user('client@test.cm', UserRole.CLIENT)
        self.admin = make_user('admin@test.cm', UserRole.ADMIN)

    def test_dashboard_requires_auth(self):
        response = self.client.get('/api/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_dashboard_by_role(self):
        self.client.force_authenticate(self.client_user)
        response = self.client.get('/api/dashboard/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['role'], UserRole.CLIENT)
        self.assertIn('total_spent', response.data['stats'])

    def test_activity_admin_only(self):
        self.client.force_authenticate(self.client_user)
        self.assertEqual(
            self.client.get('/api/dashboard/activity/').status_code,
            status.HTTP_403_FORBIDDEN
        )

        self.client.force_authenticate(self.admin)
        self.assertEqual(
            self.client.get('/api/dashboard/activity/').status_code,
            status.HTTP_200_OK
        )
