"""
KwiiGo Core Tests
=================

Tests for:
1. Custom User Model (email login, roles, commission owed)
2. Registration and profile API
3. Password reset flow
4. Security Middleware (rate limiting) and health endpoints
"""

import uuid
from decimal import Decimal

from django.core import mail
from django.core.cache import cache
from django.contrib.auth.tokens import default_token_generator
from django.db import IntegrityError
from django.test import TestCase, override_settings
from django.utils.encoding import force_bytes
from django.utils.http import urlsafe_base64_encode
from rest_framework import status
from rest_framework.test import APITestCase

from core.models import User, UserRole, City, normalize_phone

STRONG_PASSWORD = 'Kw1iGo-Douala-2026'


class TestUserModel(TestCase):
    """Tests for the custom User model."""

    def setUp(self):
        self.admin = User.objects.create_user(
            email='admin@kwiigo.cm',
            password='testpass123',
            role=UserRole.ADMIN,
            full_name='Admin Test',
        )
        self.driver = User.objects.create_user(
            email='driver@kwiigo.cm',
            password='testpass123',
            role=UserRole.DRIVER,
            full_name='Driver Test',
            phone_number='+237 699 00 00 02',
        )
        self.client_user = User.objects.create_user(
            email='client@kwiigo.cm',
            password='testpass123',
            role=UserRole.CLIENT,
            full_name='Client Test',
            city=City.YAOUNDE,
        )

    # ==========================================
    # User Creation Tests
    # ==========================================

    def test_user_creation_with_email(self):
        """User should log in with email as identifier."""
        self.assertEqual(self.driver.email, 'driver@kwiigo.cm')
        self.assertTrue(self.driver.check_password('testpass123'))

    def test_user_uuid_primary_key(self):
        self.assertIsInstance(self.driver.id, uuid.UUID)

    def test_phone_is_normalized(self):
        self.assertEqual(self.driver.phone_number, '+237699000002')
        self.assertEqual(normalize_phone('699-00-00-02'), '+237699000002')

    def test_email_is_required(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(email='', password='x')

    def test_duplicate_email_rejected(self):
        with self.assertRaises(IntegrityError):
            User.objects.create_user(email='driver@kwiigo.cm', password='testpass123')

    def test_role_properties(self):
        self.assertTrue(self.admin.is_admin)
        self.assertTrue(self.driver.is_driver)
        self.assertTrue(self.client_user.is_client)
        self.assertFalse(self.client_user.is_driver)

    def test_superuser_creation(self):
        """Superuser should be a staff admin."""
        superuser = User.objects.create_superuser(
            email='root@kwiigo.cm',
            password='superpass123',
            full_name='Root',
        )
        self.assertTrue(superuser.is_staff)
        self.assertTrue(superuser.is_superuser)
        self.assertEqual(superuser.role, UserRole.ADMIN)

    # ==========================================
    # Commission Balance Tests
    # ==========================================

    def test_initial_wallet_balance_is_zero(self):
        self.assertEqual(self.driver.wallet_balance, Decimal('0.00'))
        self.assertEqual(self.driver.commission_owed, Decimal('0.00'))

    def test_commission_owed_from_negative_balance(self):
        self.driver.wallet_balance = Decimal('-2250.00')
        self.driver.save()
        self.assertEqual(self.driver.commission_owed, Decimal('2250.00'))

    def test_user_str_representation(self):
        self.assertEqual(str(self.driver), 'Driver Test (driver)')


class TestRegistrationAPI(APITestCase):

    def payload(self, **overrides):
        data = {
            'email': 'nouveau@kwiigo.cm',
            'password': STRONG_PASSWORD,
            'confirm_password': STRONG_PASSWORD,
            'full_name': 'Nouveau Client',
            'phone_number': '699112233',
            'role': UserRole.CLIENT,
            'city': City.DOUALA,
        }
        data.update(overrides)
        return data

    def test_register_client(self):
        response = self.client.post('/api/auth/register/', self.payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['role'], UserRole.CLIENT)
        self.assertEqual(response.data['phone_number'], '+237699112233')
        self.assertNotIn('password', response.data)

    def test_register_driver(self):
        response = self.client.post(
            '/api/auth/register/', self.payload(role=UserRole.DRIVER), format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(User.objects.get(email='nouveau@kwiigo.cm').is_driver)

    def test_admin_cannot_self_register(self):
        response = self.client.post(
            '/api/auth/register/', self.payload(role=UserRole.ADMIN), format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('role', response.data)

    def test_password_mismatch(self):
        response = self.client.post(
            '/api/auth/register/',
            self.payload(confirm_password='Autre-Mot-2026'),
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('confirm_password', response.data)

    def test_invalid_phone(self):
        response = self.client.post(
            '/api/auth/register/', self.payload(phone_number='12345'), format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('phone_number', response.data)

    def test_unknown_city(self):
        response = self.client.post(
            '/api/auth/register/', self.payload(city='garoua'), format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_token_obtain_with_email(self):
        self.client.post('/api/auth/register/', self.payload(), format='json')

        response = self.client.post('/api/auth/token/', {
            'email': 'nouveau@kwiigo.cm',
            'password': STRONG_PASSWORD,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)


class TestUserAPI(APITestCase):

    def setUp(self):
        self.admin = User.objects.create_user(
            email='admin@kwiigo.cm', password='testpass123',
            role=UserRole.ADMIN, full_name='Admin',
        )
        self.driver = User.objects.create_user(
            email='driver@kwiigo.cm', password='testpass123',
            role=UserRole.DRIVER, full_name='Chauffeur',
        )

    def test_me_requires_auth(self):
        response = self.client.get('/api/users/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_profile(self):
        self.client.force_authenticate(self.driver)
        response = self.client.get('/api/users/me/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['email'], 'driver@kwiigo.cm')
        self.assertEqual(response.data['role'], UserRole.DRIVER)

    def test_me_update_cannot_change_role(self):
        self.client.force_authenticate(self.driver)
        response = self.client.patch('/api/users/me/', {
            'full_name': 'Chauffeur Renommé',
            'role': UserRole.ADMIN,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.driver.refresh_from_db()
        self.assertEqual(self.driver.full_name, 'Chauffeur Renommé')
        self.assertEqual(self.driver.role, UserRole.DRIVER)

    def test_user_list_admin_only(self):
        self.client.force_authenticate(self.driver)
        self.assertEqual(
            self.client.get('/api/users/').status_code,
            status.HTTP_403_FORBIDDEN
        )

        self.client.force_authenticate(self.admin)
        response = self.client.get('/api/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)

    def test_drivers_listing(self):
        self.client.force_authenticate(self.admin)
        response = self.client.get('/api/users/drivers/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([u['email'] for u in response.data], ['driver@kwiigo.cm'])


class TestPasswordReset(APITestCase):

    def setUp(self):
        self.user = User.objects.create_user(
            email='client@kwiigo.cm', password='ancienmotdepasse',
            role=UserRole.CLIENT, full_name='Client',
        )

    def test_request_sends_email(self):
        response = self.client.post(
            '/api/auth/password/reset/', {'email': 'client@kwiigo.cm'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn('/auth/reset-password?uid=', mail.outbox[0].body)

    def test_unknown_email_gives_same_answer(self):
        response = self.client.post(
            '/api/auth/password/reset/', {'email': 'inconnu@kwiigo.cm'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 0)

    def test_confirm_sets_new_password(self):
        uid = urlsafe_base64_encode(force_bytes(self.user.pk))
        token = default_token_generator.make_token(self.user)

        response = self.client.post('/api/auth/password/reset/confirm/', {
            'uid': uid, 'token': token, 'new_password': STRONG_PASSWORD,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password(STRONG_PASSWORD))

    def test_confirm_rejects_bad_token(self):
        uid = urlsafe_base64_encode(force_bytes(self.user.pk))

        response = self.client.post('/api/auth/password/reset/confirm/', {
            'uid': uid, 'token': 'invalide', 'new_password': STRONG_PASSWORD,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_confirm_rejects_garbage_uid(self):
        response = self.client.post('/api/auth/password/reset/confirm/', {
            'uid': 'pas-un-uid', 'token': 'x', 'new_password': STRONG_PASSWORD,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class TestSecurityMiddleware(TestCase):
    """Tests for security middleware behavior."""

    def setUp(self):
        cache.clear()

    def test_health_endpoint_accessible(self):
        """Health check should be accessible without auth."""
        response = self.client.get('/health/')
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['status'], 'ok')
        self.assertEqual(data['service'], 'kwiigo')

    def test_readiness_endpoint_accessible(self):
        response = self.client.get('/health/ready/')
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['checks']['database']['status'], 'healthy')
        self.assertEqual(data['checks']['cache']['status'], 'healthy')

    @override_settings(RATE_LIMIT_ENABLED=True)
    def test_login_rate_limited(self):
        """Eleventh login attempt within a minute is refused."""
        for _ in range(10):
            response = self.client.post(
                '/api/auth/token/',
                {'email': 'x@kwiigo.cm', 'password': 'mauvais'},
                content_type='application/json'
            )
            self.assertEqual(response.status_code, 401)

        response = self.client.post(
            '/api/auth/token/',
            {'email': 'x@kwiigo.cm', 'password': 'mauvais'},
            content_type='application/json'
        )
        self.assertEqual(response.status_code, 429)
        self.assertEqual(response['Retry-After'], '60')

    @override_settings(RATE_LIMIT_ENABLED=True)
    def test_rate_limit_headers(self):
        response = self.client.get('/api/')
        self.assertEqual(response['X-RateLimit-Limit'], '100')
        self.assertEqual(response['X-RateLimit-Remaining'], '99')
