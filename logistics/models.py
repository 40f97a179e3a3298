"""
LOGISTICS App - Orders & Chat for KwiiGo

Handles: Orders (inter-city deliveries), per-order chat messages
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from core.models import City


class OrderStatus(models.TextChoices):
    """Order status enumeration."""
    PENDING = 'pending', 'En attente'
    ACCEPTED = 'accepted', 'Acceptée'
    IN_PROGRESS = 'in_progress', 'En cours'
    COMPLETED = 'completed', 'Livrée'
    CANCELLED = 'cancelled', 'Annulée'


# Statuses in which the order carries a driver
DRIVER_STATUSES = (
    OrderStatus.ACCEPTED,
    OrderStatus.IN_PROGRESS,
    OrderStatus.COMPLETED,
)

# Statuses in which the client and the driver may chat
ACTIVE_STATUSES = (
    OrderStatus.ACCEPTED,
    OrderStatus.IN_PROGRESS,
)


class SenderRole(models.TextChoices):
    """Who wrote a chat message."""
    CLIENT = 'client', 'Client'
    DRIVER = 'driver', 'Chauffeur'


class Order(models.Model):
    """
    Inter-city delivery order.

    Pricing is frozen at creation time to prevent disputes.
    A driver is attached exactly while the order is accepted,
    in progress or completed. Orders are never deleted.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Actors
    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='orders',
        verbose_name="Client"
    )
    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='driven_orders',
        verbose_name="Chauffeur"
    )

    # Status
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        verbose_name="Statut"
    )

    # Route
    from_city = models.CharField(
        max_length=20,
        choices=City.choices,
        verbose_name="Ville de départ"
    )
    to_city = models.CharField(
        max_length=20,
        choices=City.choices,
        verbose_name="Ville de destination"
    )
    pickup_address = models.CharField(max_length=255, verbose_name="Adresse de collecte")
    delivery_address = models.CharField(max_length=255, verbose_name="Adresse de livraison")

    # Package Info
    description = models.TextField(verbose_name="Description du colis")
    weight_kg = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        verbose_name="Poids (kg)"
    )
    fragile = models.BooleanField(default=False, verbose_name="Fragile")
    urgent = models.BooleanField(default=False, verbose_name="Urgent")

    # Recipient
    recipient_name = models.CharField(max_length=150, verbose_name="Nom destinataire")
    recipient_phone = models.CharField(max_length=15, verbose_name="Téléphone destinataire")

    # Pricing (frozen at creation)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        verbose_name="Prix total (XAF)"
    )
    platform_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        verbose_name="Commission plateforme (XAF)"
    )
    driver_earning = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        verbose_name="Gain chauffeur (XAF)"
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    accepted_at = models.DateTimeField(null=True, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = "Commande"
        verbose_name_plural = "Commandes"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'created_at'], name='order_status_created_idx'),
            models.Index(fields=['client', 'created_at'], name='order_client_created_idx'),
            models.Index(fields=['driver', 'status'], name='order_driver_status_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(driver__isnull=False, status__in=[s.value for s in DRIVER_STATUSES])
                    | Q(driver__isnull=True, status__in=[OrderStatus.PENDING.value, OrderStatus.CANCELLED.value])
                ),
                name='order_driver_matches_status',
            ),
        ]

    def __str__(self):
        return f"Commande {str(self.id)[:8]} - {self.from_city}→{self.to_city} - {self.status}"

    @property
    def is_pending(self) -> bool:
        return self.status == OrderStatus.PENDING

    @property
    def is_completed(self) -> bool:
        return self.status == OrderStatus.COMPLETED

    @property
    def is_active(self) -> bool:
        """Chat is open only while the order is accepted or in progress."""
        return self.status in ACTIVE_STATUSES

    def is_participant(self, user) -> bool:
        """True for the owning client and the assigned driver."""
        if user is None or not user.is_authenticated:
            return False
        return user.pk == self.client_id or (
            self.driver_id is not None and user.pk == self.driver_id
        )


class ChatMessage(models.Model):
    """
    Message exchanged between client and driver about one order.

    Messages only exist while the order is active; they are
    all deleted when the order completes.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='messages',
        verbose_name="Commande"
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='chat_messages',
        verbose_name="Expéditeur"
    )
    sender_role = models.CharField(
        max_length=10,
        choices=SenderRole.choices,
        verbose_name="Rôle expéditeur"
    )
    message = models.TextField(verbose_name="Message")
    timestamp = models.DateTimeField(default=timezone.now, db_index=True)
    read = models.BooleanField(default=False, verbose_name="Lu")

    class Meta:
        verbose_name = "Message"
        verbose_name_plural = "Messages"
        ordering = ['timestamp']
        indexes = [
            models.Index(fields=['order', 'timestamp'], name='chat_order_timestamp_idx'),
            models.Index(fields=['order', 'read'], name='chat_order_read_idx'),
        ]

    def __str__(self):
        return f"{self.sender_role} → commande {str(self.order_id)[:8]}: {self.message[:30]}"
