"""
FINANCE App - Business Services for KwiiGo

High-level financial operations for order completion and wallet management.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum

from core.models import UserRole
from finance.models import WalletService, TransactionType, Transaction

logger = logging.getLogger(__name__)


@transaction.atomic
def record_commission(order) -> Transaction:
    """
    Debit the platform commission of a completed order from its driver.

    Business Rule:
    - The client pays the driver in cash on delivery
    - The platform DEBITS platform_fee from the driver's wallet
    - This can create a NEGATIVE balance (commission owed)

    Args:
        order: Completed Order instance with driver and platform_fee

    Returns:
        Transaction instance

    Raises:
        ValueError: If the order has no driver or the driver is not a driver
    """
    driver = order.driver
    if not driver:
        raise ValueError("La commande n'a pas de chauffeur assigné")

    if driver.role != UserRole.DRIVER:
        raise ValueError(f"L'utilisateur {driver.email} n'est pas un chauffeur")

    tx = WalletService.debit(
        user=driver,
        amount=order.platform_fee,
        transaction_type=TransactionType.COMMISSION,
        order=order,
        description=f"Commission livraison #{str(order.id)[:8]}",
        allow_negative=True
    )

    logger.info(
        f"[FINANCE] Commission {order.platform_fee} XAF debited from {driver.email} | "
        f"Balance: {tx.balance_before} -> {tx.balance_after} XAF"
    )
    return tx


@transaction.atomic
def record_remittance(driver, amount: Decimal, recorded_by=None, note: str = "") -> Transaction:
    """
    Credit a driver who handed collected commission over to the platform.

    Raises:
        ValueError: If the user is not a driver or the amount is not positive
    """
    if driver.role != UserRole.DRIVER:
        raise ValueError(f"L'utilisateur {driver.email} n'est pas un chauffeur")

    description = note or "Reversement de commission"
    if recorded_by is not None:
        description = f"{description} (enregistré par {recorded_by.email})"

    tx = WalletService.credit(
        user=driver,
        amount=amount,
        transaction_type=TransactionType.REMITTANCE,
        description=description[:255],
    )

    logger.info(
        f"[FINANCE] Remittance {amount} XAF credited to {driver.email} | "
        f"New balance: {tx.balance_after} XAF"
    )
    return tx


def wallet_summary(driver) -> dict:
    """
    Get a summary of a driver's financial status.

    Returns:
        dict: {
            "balance": Decimal,
            "commission_owed": Decimal,
            "total_earned": Decimal,   # sum of driver earnings on completed orders
            "total_commission": Decimal,
            "completed_orders": int,
        }
    """
    from logistics.models import OrderStatus

    if driver.role != UserRole.DRIVER:
        raise ValueError("L'utilisateur n'est pas un chauffeur")

    completed = driver.driven_orders.filter(status=OrderStatus.COMPLETED)
    totals = completed.aggregate(
        earned=Sum('driver_earning'),
        commission=Sum('platform_fee'),
    )

    return {
        'balance': driver.wallet_balance,
        'commission_owed': driver.commission_owed,
        'total_earned': totals['earned'] or Decimal('0.00'),
        'total_commission': totals['commission'] or Decimal('0.00'),
        'completed_orders': completed.count(),
    }
