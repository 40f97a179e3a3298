"""
REPORTS App - Dashboard Statistics Service

Aggregates order, user and revenue figures for the admin,
driver and client dashboards.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List

from django.contrib.auth import get_user_model
from django.db.models import Count, Q, Sum

from core.models import UserRole
from logistics.models import ACTIVE_STATUSES, Order, OrderStatus

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 10

# status -> (activity type, who acted, French action label)
ACTIVITY_BY_STATUS = {
    OrderStatus.PENDING: ('order_created', 'client', "a créé une nouvelle commande"),
    OrderStatus.ACCEPTED: ('order_accepted', 'driver', "a accepté la commande"),
    OrderStatus.COMPLETED: ('order_completed', 'driver', "a terminé la commande"),
}
DEFAULT_ACTIVITY = ('order_updated', 'client', "a mis à jour la commande")


def _sum(queryset, field: str) -> Decimal:
    return queryset.aggregate(total=Sum(field))['total'] or Decimal('0.00')


class DashboardService:
    """Read-only statistics per role."""

    @staticmethod
    def admin_stats() -> Dict[str, Any]:
        User = get_user_model()

        users = User.objects.aggregate(
            total=Count('id'),
            clients=Count('id', filter=Q(role=UserRole.CLIENT)),
            drivers=Count('id', filter=Q(role=UserRole.DRIVER)),
            admins=Count('id', filter=Q(role=UserRole.ADMIN)),
        )
        orders = Order.objects.aggregate(
            total=Count('id'),
            pending=Count('id', filter=Q(status=OrderStatus.PENDING)),
            in_progress=Count('id', filter=Q(status__in=ACTIVE_STATUSES)),
            completed=Count('id', filter=Q(status=OrderStatus.COMPLETED)),
            cancelled=Count('id', filter=Q(status=OrderStatus.CANCELLED)),
        )
        completed = Order.objects.filter(status=OrderStatus.COMPLETED)

        return {
            'users': users,
            'orders': orders,
            'total_revenue': _sum(completed, 'price'),
            'total_commission': _sum(completed, 'platform_fee'),
            'recent_activities': DashboardService.recent_activities(),
        }

    @staticmethod
    def recent_activities(limit: int = RECENT_ACTIVITY_LIMIT) -> List[Dict[str, Any]]:
        """The most recently touched orders, described as activity lines."""
        activities = []
        recent = Order.objects.select_related('client', 'driver').order_by('-updated_at')[:limit]
        for order in recent:
            activity_type, actor, action = ACTIVITY_BY_STATUS.get(order.status, DEFAULT_ACTIVITY)
            user = order.driver if actor == 'driver' and order.driver else order.client
            activities.append({
                'id': str(order.id),
                'type': activity_type,
                'user': user.full_name or user.email,
                'action': action,
                'order_ref': str(order.id)[-6:],
                'timestamp': order.updated_at.isoformat(),
            })
        return activities

    @staticmethod
    def driver_stats(driver) -> Dict[str, Any]:
        own = Order.objects.filter(driver=driver)
        completed = own.filter(status=OrderStatus.COMPLETED)

        return {
            'available': Order.objects.filter(status=OrderStatus.PENDING).count(),
            'active': own.filter(status__in=ACTIVE_STATUSES).count(),
            'completed': completed.count(),
            'total_earnings': _sum(completed, 'driver_earning'),
            'total_commission': _sum(completed, 'platform_fee'),
            'wallet_balance': driver.wallet_balance,
        }

    @staticmethod
    def client_stats(client) -> Dict[str, Any]:
        own = Order.objects.filter(client=client)

        return {
            'total': own.count(),
            'pending': own.filter(status=OrderStatus.PENDING).count(),
            'active': own.filter(status__in=ACTIVE_STATUSES).count(),
            'completed': own.filter(status=OrderStatus.COMPLETED).count(),
            'total_spent': _sum(own.filter(status=OrderStatus.COMPLETED), 'price'),
        }

    @classmethod
    def for_user(cls, user) -> Dict[str, Any]:
        if user.role == UserRole.ADMIN:
            return cls.admin_stats()
        if user.role == UserRole.DRIVER:
            return cls.driver_stats(user)
        return cls.client_stats(user)
