"""
LOGISTICS App - Order Lifecycle Service for KwiiGo

Status machine for orders:

    pending ──accept──> accepted ──start──> in_progress ──complete──> completed
       │                    └─────────────complete──────────────────────┘
       └──cancel──> cancelled

Every change goes through this module so the driver/status invariant
holds and the side effects (chat deletion, commission) run exactly once.
Real-time broadcasts are sent by logistics.signals after commit.
"""

import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from core.models import UserRole
from logistics.exceptions import InvalidTransition, OrderAccessDenied, OrderNotFound
from logistics.models import Order, OrderStatus
from logistics.services import chat
from logistics.services.pricing import pricing_engine

logger = logging.getLogger(__name__)


# ============================================
# LOOKUP
# ============================================

def get_order(order_id, lock: bool = False) -> Order:
    """
    Fetch an order by id.

    Raises:
        OrderNotFound: If no order has this id
    """
    queryset = Order.objects.select_related('client', 'driver')
    if lock:
        queryset = queryset.select_for_update(of=('self',))
    try:
        return queryset.get(pk=order_id)
    except (Order.DoesNotExist, ValueError, ValidationError):
        raise OrderNotFound(f"Commande {order_id} introuvable")


def _locked(order) -> Order:
    order_id = order.pk if isinstance(order, Order) else order
    return get_order(order_id, lock=True)


# ============================================
# CREATION
# ============================================

@transaction.atomic
def create_order(client, **data) -> Order:
    """
    Create a pending order for a client with a frozen price.

    Args:
        client: User with role client
        data: from_city, to_city, pickup_address, delivery_address,
              description, weight_kg, fragile, urgent,
              recipient_name, recipient_phone

    Raises:
        OrderAccessDenied: If the user is not a client
        ValueError: If pricing inputs are invalid
    """
    if client.role != UserRole.CLIENT:
        raise OrderAccessDenied("Seuls les clients peuvent créer des commandes")

    price, platform_fee, driver_earning = pricing_engine.calculate_price(
        weight_kg=data['weight_kg'],
        from_city=data['from_city'],
        to_city=data['to_city'],
        urgent=data.get('urgent', False),
        fragile=data.get('fragile', False),
    )

    order = Order.objects.create(
        client=client,
        status=OrderStatus.PENDING,
        price=price,
        platform_fee=platform_fee,
        driver_earning=driver_earning,
        **data
    )

    logger.info(
        f"[LIFECYCLE] Order {str(order.id)[:8]} created by {client.email} | "
        f"{order.from_city}->{order.to_city} | {price} XAF"
    )
    return order


# ============================================
# TRANSITIONS
# ============================================

@transaction.atomic
def accept_order(order, driver) -> Order:
    """
    Accept a pending order as a driver (race condition safe).

    Uses SELECT FOR UPDATE to prevent two drivers from
    accepting the same order simultaneously.

    Raises:
        OrderAccessDenied: If the user is not an active driver
        InvalidTransition: If the order is no longer pending
    """
    if driver.role != UserRole.DRIVER:
        raise OrderAccessDenied("Seuls les chauffeurs peuvent accepter des commandes")

    if not driver.is_active:
        raise OrderAccessDenied("Votre compte est désactivé")

    order = _locked(order)

    if order.status != OrderStatus.PENDING:
        raise InvalidTransition("Cette commande n'est plus disponible")

    order.driver = driver
    order.status = OrderStatus.ACCEPTED
    order.accepted_at = timezone.now()
    order.save(update_fields=['driver', 'status', 'accepted_at', 'updated_at'])

    logger.info(f"[LIFECYCLE] Order {str(order.id)[:8]} accepted by driver {driver.email}")
    return order


def _assert_assigned_driver(order: Order, driver):
    if driver.role != UserRole.DRIVER or order.driver_id != driver.pk:
        raise OrderAccessDenied("Vous n'êtes pas le chauffeur de cette commande")


@transaction.atomic
def start_order(order, driver) -> Order:
    """
    Mark an accepted order as in transit.

    Raises:
        OrderAccessDenied: If the user is not the assigned driver
        InvalidTransition: If the order is not accepted
    """
    order = _locked(order)
    _assert_assigned_driver(order, driver)

    if order.status != OrderStatus.ACCEPTED:
        raise InvalidTransition(
            f"Impossible de démarrer une commande au statut '{order.status}'"
        )

    order.status = OrderStatus.IN_PROGRESS
    order.started_at = timezone.now()
    order.save(update_fields=['status', 'started_at', 'updated_at'])

    logger.info(f"[LIFECYCLE] Order {str(order.id)[:8]} in progress")
    return order


@transaction.atomic
def complete_order(order, driver) -> Order:
    """
    Mark an order as delivered.

    Side effects:
    - Delete the whole chat history of the order
    - Debit the platform commission from the driver's wallet

    Raises:
        OrderAccessDenied: If the user is not the assigned driver
        InvalidTransition: If the order is not accepted or in progress
    """
    from finance.services import record_commission

    order = _locked(order)
    _assert_assigned_driver(order, driver)

    if order.status not in (OrderStatus.ACCEPTED, OrderStatus.IN_PROGRESS):
        raise InvalidTransition(
            f"Impossible de terminer une commande au statut '{order.status}'"
        )

    order.status = OrderStatus.COMPLETED
    order.completed_at = timezone.now()
    order.save(update_fields=['status', 'completed_at', 'updated_at'])

    deleted = chat.delete_messages(order)

    if order.platform_fee > 0:
        record_commission(order)

    logger.info(
        f"[LIFECYCLE] Order {str(order.id)[:8]} completed | "
        f"{deleted} chat messages deleted | commission {order.platform_fee} XAF"
    )
    return order


@transaction.atomic
def cancel_order(order, actor) -> Order:
    """
    Cancel a pending order.

    Only the owning client or an admin may cancel, and only
    before a driver has accepted it.

    Raises:
        OrderAccessDenied: If the actor is neither the client nor an admin
        InvalidTransition: If the order is not pending
    """
    order = _locked(order)

    if actor.role != UserRole.ADMIN and order.client_id != actor.pk:
        raise OrderAccessDenied("Vous ne pouvez pas annuler cette commande")

    if order.status != OrderStatus.PENDING:
        raise InvalidTransition("Seules les commandes en attente peuvent être annulées")

    order.status = OrderStatus.CANCELLED
    order.cancelled_at = timezone.now()
    order.save(update_fields=['status', 'cancelled_at', 'updated_at'])

    logger.info(f"[LIFECYCLE] Order {str(order.id)[:8]} cancelled by {actor.email}")
    return order


_TRANSITIONS = {
    OrderStatus.ACCEPTED: accept_order,
    OrderStatus.IN_PROGRESS: start_order,
    OrderStatus.COMPLETED: complete_order,
    OrderStatus.CANCELLED: cancel_order,
}


def transition(order, new_status: str, actor) -> Order:
    """
    Apply a status change requested by `actor`.

    Raises:
        InvalidTransition: If no operation leads to new_status
    """
    operation = _TRANSITIONS.get(new_status)
    if operation is None:
        raise InvalidTransition(f"Statut cible invalide: '{new_status}'")
    return operation(order, actor)


# ============================================
# QUERIES
# ============================================

def orders_for_client(client):
    return Order.objects.filter(client=client).select_related('client', 'driver').order_by('-created_at')


def available_orders():
    """Pending orders any driver may accept, newest first."""
    return Order.objects.filter(status=OrderStatus.PENDING).select_related('client').order_by('-created_at')


def orders_for_driver(driver):
    return Order.objects.filter(driver=driver).select_related('client', 'driver').order_by('-created_at')


def all_orders():
    return Order.objects.select_related('client', 'driver').order_by('-created_at')


def visible_orders(user):
    """
    Orders a user may see.

    - Admin: everything
    - Driver: pending orders and their own
    - Client: their own
    """
    if user.role == UserRole.ADMIN:
        return all_orders()
    if user.role == UserRole.DRIVER:
        return all_orders().filter(Q(status=OrderStatus.PENDING) | Q(driver=user))
    return orders_for_client(user)
