"""
Logistics App Views - Orders, Chat & Quotes
"""

import logging

from rest_framework import viewsets, status, permissions
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from core.models import UserRole
from core.views import IsClient
from . import events
from .exceptions import ChatClosed, InvalidTransition, LifecycleError, OrderAccessDenied, OrderNotFound
from .models import Order
from .serializers import (
    OrderSerializer, OrderCreateSerializer, OrderStatusUpdateSerializer,
    QuoteRequestSerializer, QuoteResponseSerializer,
    ChatMessageSerializer, ChatMessageCreateSerializer,
)
from .services import chat, lifecycle
from .services.pricing import pricing_engine

logger = logging.getLogger(__name__)


def error_response(exc: Exception) -> Response:
    """Translate a domain error into a JSON error response."""
    if isinstance(exc, OrderNotFound):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, OrderAccessDenied):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, (InvalidTransition, ChatClosed)):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST
    return Response({'error': str(exc)}, status=code)


class OrderViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for Order management.

    - list/retrieve: scoped by role (admin all, driver pending + own, client own)
    - create: clients
    - accept/start/complete: drivers
    - cancel: owning client or admin
    - messages/read/unread: order chat
    """

    queryset = Order.objects.all()
    serializer_class = OrderSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ['status', 'from_city', 'to_city']

    def get_permissions(self):
        if self.action == 'create':
            return [IsClient()]
        return super().get_permissions()

    def get_queryset(self):
        return lifecycle.visible_orders(self.request.user)

    def _order(self, pk):
        """Lookup for actions; permissions are checked by the services."""
        return lifecycle.get_order(pk)

    def create(self, request):
        """Create a new order with a frozen price."""
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            order = lifecycle.create_order(request.user, **serializer.validated_data)
        except LifecycleError as e:
            return error_response(e)
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    def _apply(self, operation, pk):
        try:
            order = operation(self._order(pk), self.request.user)
        except LifecycleError as e:
            return error_response(e)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=['post'])
    def accept(self, request, pk=None):
        """Accept a pending order (driver)."""
        return self._apply(lifecycle.accept_order, pk)

    @action(detail=True, methods=['post'])
    def start(self, request, pk=None):
        """Mark an accepted order as in progress (assigned driver)."""
        return self._apply(lifecycle.start_order, pk)

    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        """Mark an order as delivered (assigned driver)."""
        return self._apply(lifecycle.complete_order, pk)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """Cancel a pending order (owning client or admin)."""
        return self._apply(lifecycle.cancel_order, pk)

    @action(detail=True, methods=['post'], url_path='status')
    def update_status(self, request, pk=None):
        """Generic status change: {"status": "..."}."""
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        new_status = serializer.validated_data['status']
        try:
            order = lifecycle.transition(self._order(pk), new_status, request.user)
        except LifecycleError as e:
            return error_response(e)
        return Response(OrderSerializer(order).data)

    @action(detail=False, methods=['get'])
    def available(self, request):
        """List pending orders for drivers."""
        if request.user.role != UserRole.DRIVER:
            return Response(
                {'error': 'Réservé aux chauffeurs.'},
                status=status.HTTP_403_FORBIDDEN
            )
        page = self.paginate_queryset(lifecycle.available_orders())
        serializer = OrderSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    @action(detail=False, methods=['get'])
    def mine(self, request):
        """Orders of the current user: created (client) or assigned (driver)."""
        user = request.user
        if user.role == UserRole.DRIVER:
            queryset = lifecycle.orders_for_driver(user)
        elif user.role == UserRole.CLIENT:
            queryset = lifecycle.orders_for_client(user)
        else:
            queryset = lifecycle.all_orders()
        page = self.paginate_queryset(queryset)
        serializer = OrderSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    # ============================================
    # CHAT
    # ============================================

    @action(detail=True, methods=['get', 'post'])
    def messages(self, request, pk=None):
        """
        GET: chat history (oldest first).
        POST: send a message {"message": "..."}.
        """
        try:
            order = self._order(pk)
            if request.method == 'POST':
                serializer = ChatMessageCreateSerializer(data=request.data)
                serializer.is_valid(raise_exception=True)
                message = chat.send_message(order, request.user, serializer.validated_data['message'])
                data = ChatMessageSerializer(message).data
                events.broadcast_chat_message(order.id, dict(data))
                return Response(data, status=status.HTTP_201_CREATED)

            messages = chat.list_messages(order, request.user)
        except LifecycleError as e:
            return error_response(e)
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(ChatMessageSerializer(messages, many=True).data)

    @action(detail=True, methods=['post'])
    def read(self, request, pk=None):
        """Mark the other party's messages as read."""
        try:
            order = self._order(pk)
            count = chat.mark_as_read(order, request.user)
        except LifecycleError as e:
            return error_response(e)
        if count:
            events.broadcast_messages_read(order.id, request.user.pk, count)
        return Response({'marked_read': count})

    @action(detail=True, methods=['get'])
    def unread(self, request, pk=None):
        try:
            order = self._order(pk)
            count = chat.unread_count(order, request.user)
        except LifecycleError as e:
            return error_response(e)
        return Response({'unread': count})


class QuoteAPIView(APIView):
    """
    Public price estimation.

    POST /api/quote/
    {"from_city": "yaounde", "to_city": "douala", "weight_kg": 3,
     "urgent": false, "fragile": true}
    """

    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = QuoteRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            breakdown = pricing_engine.breakdown(
                weight_kg=data['weight_kg'],
                from_city=data['from_city'],
                to_city=data['to_city'],
                urgent=data['urgent'],
                fragile=data['fragile'],
            )
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        platform_fee, driver_earning = pricing_engine.split(breakdown['total'])
        response_data = {
            **breakdown,
            'platform_fee': platform_fee,
            'driver_earning': driver_earning,
            'currency': 'XAF',
        }
        return Response(QuoteResponseSerializer(response_data).data)
