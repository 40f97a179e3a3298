"""
Shared builders for the logistics tests.
"""

from decimal import Decimal

from core.models import User, UserRole, City
from logistics.models import Order, OrderStatus


def make_user(email, role=UserRole.CLIENT, **extra):
    return User.objects.create_user(
        email=email,
        password='testpass123',
        full_name=extra.pop('full_name', email.split('@')[0].title()),
        role=role,
        city=City.DOUALA,
        **extra
    )


def order_payload(**overrides):
    """Request body / service kwargs for a 1 kg Douala -> Yaoundé order."""
    data = {
        'from_city': City.DOUALA,
        'to_city': City.YAOUNDE,
        'pickup_address': 'Akwa, rue Joss',
        'delivery_address': 'Bastos, face ambassade',
        'description': 'Enveloppe de documents',
        'weight_kg': Decimal('1.00'),
        'fragile': False,
        'urgent': False,
        'recipient_name': 'Paul Mbarga',
        'recipient_phone': '+237690000000',
    }
    data.update(overrides)
    return data


def make_order(client, status=OrderStatus.PENDING, driver=None, **overrides):
    """Insert an order directly, bypassing the lifecycle service."""
    data = order_payload(**overrides)
    return Order.objects.create(
        client=client,
        driver=driver,
        status=status,
        price=Decimal('6000.00'),
        platform_fee=Decimal('900.00'),
        driver_earning=Decimal('5100.00'),
        **data
    )
