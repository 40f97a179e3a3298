"""
Finance App Serializers - Transactions & Wallet
"""

from decimal import Decimal

from rest_framework import serializers
from .models import Transaction


class TransactionSerializer(serializers.ModelSerializer):
    """Serializer for Transaction model."""

    user_email = serializers.CharField(source='user.email', read_only=True)
    order = serializers.UUIDField(source='order_id', read_only=True, allow_null=True)

    class Meta:
        model = Transaction
        fields = [
            'id', 'user', 'user_email', 'transaction_type', 'amount',
            'balance_before', 'balance_after',
            'order', 'description', 'created_at'
        ]
        read_only_fields = fields


class TransactionListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for transaction listings."""

    class Meta:
        model = Transaction
        fields = ['id', 'transaction_type', 'amount', 'balance_after', 'description', 'created_at']


class RemittanceSerializer(serializers.Serializer):
    """Serializer for recording a driver remittance (Admin only)."""

    driver_id = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('1'))
    note = serializers.CharField(max_length=200, required=False, allow_blank=True)


class WalletSummarySerializer(serializers.Serializer):
    """Serializer for wallet summary response."""

    balance = serializers.DecimalField(max_digits=12, decimal_places=2)
    commission_owed = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_earned = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_commission = serializers.DecimalField(max_digits=12, decimal_places=2)
    completed_orders = serializers.IntegerField()
    history = TransactionListSerializer(many=True)
