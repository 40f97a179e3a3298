"""
Tests for the order admin actions.
"""

from django.contrib.admin.helpers import ACTION_CHECKBOX_NAME
from django.test import TestCase

from core.models import User, UserRole
from logistics.models import OrderStatus
from .helpers import make_order, make_user


class OrderAdminActionsTest(TestCase):

    def setUp(self):
        self.superuser = User.objects.create_superuser(
            email='root@kwiigo.cm', password='testpass123', full_name='Root'
        )
        self.client.force_login(self.superuser)
        self.client_user = make_user('client@test.cm')
        self.driver = make_user('driver@test.cm', UserRole.DRIVER)

    def run_action(self, action, orders):
        return self.client.post('/admin/logistics/order/', {
            'action': action,
            ACTION_CHECKBOX_NAME: [str(o.pk) for o in orders],
        })

    def test_cancel_only_touches_pending(self):
        pending = make_order(self.client_user)
        accepted = make_order(self.client_user, OrderStatus.ACCEPTED, self.driver)

        response = self.run_action('cancel_orders', [pending, accepted])

        self.assertEqual(response.status_code, 302)
        pending.refresh_from_db()
        accepted.refresh_from_db()
        self.assertEqual(pending.status, OrderStatus.CANCELLED)
        self.assertEqual(accepted.status, OrderStatus.ACCEPTED)

    def test_export_csv(self):
        order = make_order(self.client_user, OrderStatus.COMPLETED, self.driver)

        response = self.run_action('export_orders_csv', [order])

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'text/csv')
        content = response.content.decode('utf-8-sig')
        self.assertIn('Livrée', content)
        self.assertIn('driver@test.cm', content)
        self.assertIn('6000.00 XAF', content)

    def test_priced_fields_are_read_only(self):
        order = make_order(self.client_user)

        response = self.client.get(f'/admin/logistics/order/{order.pk}/change/')

        self.assertEqual(response.status_code, 200)
        for field in ('from_city', 'to_city', 'weight_kg', 'fragile', 'urgent', 'price'):
            self.assertNotContains(response, f'name="{field}"')
        self.assertContains(response, 'name="recipient_name"')
