"""
FINANCE App - Wallet & Transaction Management for KwiiGo

Handles: Transactions, Wallet Operations, Commission Tracking
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models, transaction


class TransactionType(models.TextChoices):
    """Transaction type enumeration."""
    # Credits (+)
    REMITTANCE = 'remittance', 'Reversement chauffeur'

    # Debits (-)
    COMMISSION = 'commission', 'Commission plateforme'


class Transaction(models.Model):
    """
    Financial transaction record.

    All wallet movements must create a Transaction for audit trail.
    Amount can be positive (credit) or negative (debit).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='transactions',
        verbose_name="Utilisateur"
    )

    # Transaction Details
    transaction_type = models.CharField(
        max_length=20,
        choices=TransactionType.choices,
        verbose_name="Type"
    )
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        verbose_name="Montant (XAF)"
    )
    balance_before = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        verbose_name="Solde avant"
    )
    balance_after = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        verbose_name="Solde après"
    )

    # Related Order (if applicable)
    order = models.ForeignKey(
        'logistics.Order',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='transactions',
        verbose_name="Commande liée"
    )

    # Metadata
    description = models.CharField(
        max_length=255,
        blank=True,
        verbose_name="Description"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Transaction"
        verbose_name_plural = "Transactions"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'created_at'], name='tx_user_created_idx'),
            models.Index(fields=['transaction_type'], name='tx_type_idx'),
        ]

    def __str__(self):
        sign = '+' if self.amount >= 0 else ''
        return f"{self.user.email} | {sign}{self.amount} XAF | {self.transaction_type}"


class WalletService:
    """
    Service class for wallet operations.

    All operations use transaction.atomic() for data integrity.
    """

    @staticmethod
    @transaction.atomic
    def credit(user, amount: Decimal, transaction_type: str,
               order=None, description: str = "") -> Transaction:
        """
        Credit a user's wallet (add money).

        Args:
            user: User instance
            amount: Positive decimal amount
            transaction_type: TransactionType value
            order: Optional related order
            description: Optional description

        Returns:
            Transaction instance
        """
        if amount <= 0:
            raise ValueError("Le montant doit être positif")

        # Lock user row for update
        user = user.__class__.objects.select_for_update().get(pk=user.pk)

        balance_before = user.wallet_balance
        user.wallet_balance += amount
        user.save(update_fields=['wallet_balance'])

        return Transaction.objects.create(
            user=user,
            transaction_type=transaction_type,
            amount=amount,
            balance_before=balance_before,
            balance_after=user.wallet_balance,
            order=order,
            description=description,
        )

    @staticmethod
    @transaction.atomic
    def debit(user, amount: Decimal, transaction_type: str,
              order=None, description: str = "",
              allow_negative: bool = False) -> Transaction:
        """
        Debit a user's wallet (remove money).

        Args:
            user: User instance
            amount: Positive decimal amount (will be stored as negative)
            transaction_type: TransactionType value
            order: Optional related order
            description: Optional description
            allow_negative: Allow wallet to go negative (driver commission debt)

        Returns:
            Transaction instance

        Raises:
            ValueError: If insufficient funds and allow_negative is False
        """
        if amount <= 0:
            raise ValueError("Le montant doit être positif")

        # Lock user row for update
        user = user.__class__.objects.select_for_update().get(pk=user.pk)

        if not allow_negative and user.wallet_balance < amount:
            raise ValueError(f"Solde insuffisant: {user.wallet_balance} XAF")

        balance_before = user.wallet_balance
        user.wallet_balance -= amount
        user.save(update_fields=['wallet_balance'])

        return Transaction.objects.create(
            user=user,
            transaction_type=transaction_type,
            amount=-amount,  # Stored as negative
            balance_before=balance_before,
            balance_after=user.wallet_balance,
            order=order,
            description=description,
        )
