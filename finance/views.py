"""
Finance App Views - Transactions & Wallet API
"""

from django.contrib.auth import get_user_model
from rest_framework import viewsets, status, permissions
from rest_framework.response import Response

from core.models import UserRole
from core.views import IsAdminUser, IsDriver
from .models import Transaction
from .serializers import (
    TransactionSerializer, TransactionListSerializer,
    RemittanceSerializer, WalletSummarySerializer
)
from .services import record_remittance, wallet_summary

HISTORY_LIMIT = 50


class TransactionViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for Transaction (read-only).
    Users can only see their own transactions; admins see all.
    """

    queryset = Transaction.objects.all()
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ['transaction_type']

    def get_serializer_class(self):
        if self.action == 'list':
            return TransactionListSerializer
        return TransactionSerializer

    def get_queryset(self):
        user = self.request.user
        qs = Transaction.objects.select_related('user')
        if user.role == UserRole.ADMIN:
            return qs
        return qs.filter(user=user)


class WalletViewSet(viewsets.ViewSet):
    """
    ViewSet for wallet operations.

    - summary: driver balance, commission owed, earnings, history
    - remittance: admin records cash handed over by a driver
    """

    permission_classes = [IsDriver]

    def get_permissions(self):
        if self.action == 'remittance':
            return [IsAdminUser()]
        return super().get_permissions()

    def summary(self, request):
        """Get the current driver's wallet."""
        data = wallet_summary(request.user)
        data['history'] = Transaction.objects.filter(
            user=request.user
        ).order_by('-created_at')[:HISTORY_LIMIT]

        return Response(WalletSummarySerializer(data).data)

    def remittance(self, request):
        """Credit a driver who remitted collected commission (Admin only)."""
        serializer = RemittanceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        User = get_user_model()
        try:
            driver = User.objects.get(pk=data['driver_id'], role=UserRole.DRIVER)
        except User.DoesNotExist:
            return Response(
                {'error': 'Chauffeur non trouvé.'},
                status=status.HTTP_404_NOT_FOUND
            )

        try:
            tx = record_remittance(driver, data['amount'], request.user, data.get('note', ''))
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            'message': f"Reversement de {data['amount']} XAF enregistré.",
            'new_balance': tx.balance_after,
            'transaction_id': str(tx.id)
        }, status=status.HTTP_201_CREATED)
