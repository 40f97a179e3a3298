"""
Logistics App Serializers - Orders & Chat
"""

from decimal import Decimal

from django.conf import settings
from rest_framework import serializers

from core.models import City, normalize_phone, PHONE_PATTERN
from .models import Order, ChatMessage, OrderStatus


class OrderSerializer(serializers.ModelSerializer):
    """Full serializer for Order model."""

    client = serializers.UUIDField(source='client_id', read_only=True)
    driver = serializers.UUIDField(source='driver_id', read_only=True, allow_null=True)
    client_name = serializers.CharField(source='client.full_name', read_only=True)
    driver_name = serializers.CharField(source='driver.full_name', read_only=True, default=None)
    driver_phone = serializers.CharField(source='driver.phone_number', read_only=True, default=None)

    class Meta:
        model = Order
        fields = [
            'id', 'client', 'client_name', 'driver', 'driver_name', 'driver_phone',
            'status', 'from_city', 'to_city', 'pickup_address', 'delivery_address',
            'description', 'weight_kg', 'fragile', 'urgent',
            'recipient_name', 'recipient_phone',
            'price', 'platform_fee', 'driver_earning',
            'created_at', 'updated_at', 'accepted_at', 'started_at',
            'completed_at', 'cancelled_at',
        ]
        read_only_fields = fields


class OrderCreateSerializer(serializers.Serializer):
    """Serializer for creating a new order (client)."""

    from_city = serializers.ChoiceField(choices=City.choices)
    to_city = serializers.ChoiceField(choices=City.choices)
    pickup_address = serializers.CharField(max_length=255)
    delivery_address = serializers.CharField(max_length=255)
    description = serializers.CharField()
    weight_kg = serializers.DecimalField(
        max_digits=8, decimal_places=2, min_value=Decimal('0.01'),
        max_value=Decimal(settings.PRICING_MAX_WEIGHT_KG)
    )
    fragile = serializers.BooleanField(default=False)
    urgent = serializers.BooleanField(default=False)
    recipient_name = serializers.CharField(max_length=150)
    recipient_phone = serializers.CharField(max_length=20)

    def validate_recipient_phone(self, value):
        import re
        phone = normalize_phone(value)
        if not re.match(PHONE_PATTERN, phone):
            raise serializers.ValidationError("Format: +237 6XX XXX XXX")
        return phone


class QuoteRequestSerializer(serializers.Serializer):
    """Serializer for price estimation request."""

    from_city = serializers.ChoiceField(choices=City.choices)
    to_city = serializers.ChoiceField(choices=City.choices)
    weight_kg = serializers.DecimalField(
        max_digits=8, decimal_places=2, min_value=Decimal('0.01'),
        max_value=Decimal(settings.PRICING_MAX_WEIGHT_KG)
    )
    fragile = serializers.BooleanField(default=False)
    urgent = serializers.BooleanField(default=False)


class QuoteResponseSerializer(serializers.Serializer):
    """Serializer for price estimation response."""

    base_price = serializers.DecimalField(max_digits=10, decimal_places=2)
    distance_fee = serializers.DecimalField(max_digits=10, decimal_places=2)
    urgent_fee = serializers.DecimalField(max_digits=10, decimal_places=2)
    fragile_fee = serializers.DecimalField(max_digits=10, decimal_places=2)
    total = serializers.DecimalField(max_digits=10, decimal_places=2)
    platform_fee = serializers.DecimalField(max_digits=10, decimal_places=2)
    driver_earning = serializers.DecimalField(max_digits=10, decimal_places=2)
    currency = serializers.CharField(default='XAF')


class OrderStatusUpdateSerializer(serializers.Serializer):
    """Serializer for a generic status change."""

    status = serializers.ChoiceField(choices=OrderStatus.choices)


class ChatMessageSerializer(serializers.ModelSerializer):
    """Serializer for chat messages."""

    order = serializers.UUIDField(source='order_id', read_only=True)
    sender = serializers.UUIDField(source='sender_id', read_only=True)
    sender_name = serializers.CharField(source='sender.full_name', read_only=True)

    class Meta:
        model = ChatMessage
        fields = ['id', 'order', 'sender', 'sender_name', 'sender_role', 'message', 'timestamp', 'read']
        read_only_fields = fields


class ChatMessageCreateSerializer(serializers.Serializer):
    # Length and blank checks live in the chat service
    message = serializers.CharField(allow_blank=True, trim_whitespace=False)
