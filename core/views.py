"""
Core App Views - User Management API
"""

import logging

from rest_framework import viewsets, status, permissions
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView
from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.tokens import default_token_generator
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.mail import send_mail
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_encode, urlsafe_base64_decode

from .serializers import (
    UserSerializer, UserCreateSerializer,
    PasswordResetRequestSerializer, PasswordResetConfirmSerializer
)
from .models import UserRole

logger = logging.getLogger(__name__)

User = get_user_model()


class IsAdminUser(permissions.BasePermission):
    """Permission for admin users only."""

    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role == UserRole.ADMIN


class IsDriver(permissions.BasePermission):
    """Permission for driver users only."""

    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role == UserRole.DRIVER


class IsClient(permissions.BasePermission):
    """Permission for client users only."""

    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role == UserRole.CLIENT


class RegisterView(APIView):
    """Public registration for clients and drivers."""

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info(f"[AUTH] New {user.role} registered: {user.email}")
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


class UserViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for User model.

    - List/Retrieve: Admin only
    - me: any authenticated user (GET profile, PATCH name/phone/city)
    """

    queryset = User.objects.all()
    serializer_class = UserSerializer
    permission_classes = [IsAdminUser]
    filterset_fields = ['role', 'city']
    search_fields = ['full_name', 'email', 'phone_number']

    @action(detail=False, methods=['get', 'patch'], permission_classes=[permissions.IsAuthenticated])
    def me(self, request):
        """Get or update the current user profile. Role is read-only."""
        if request.method == 'PATCH':
            serializer = self.get_serializer(request.user, data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            serializer.save()
            return Response(serializer.data)
        serializer = self.get_serializer(request.user)
        return Response(serializer.data)

    @action(detail=False, methods=['get'])
    def drivers(self, request):
        """List all drivers (Admin only)."""
        drivers = User.objects.filter(role=UserRole.DRIVER)
        serializer = self.get_serializer(drivers, many=True)
        return Response(serializer.data)


class PasswordResetRequestView(APIView):
    """
    Send a password reset link.

    Always answers 200 so the endpoint cannot be used to probe
    which emails have an account.
    """

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = PasswordResetRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data['email']

        user = User.objects.filter(email__iexact=email, is_active=True).first()
        if user:
            uid = urlsafe_base64_encode(force_bytes(user.pk))
            token = default_token_generator.make_token(user)
            link = f"{settings.FRONTEND_URL}/auth/reset-password?uid={uid}&token={token}"
            send_mail(
                subject="KwiiGo - Réinitialisation du mot de passe",
                message=(
                    f"Bonjour {user.full_name},\n\n"
                    f"Pour choisir un nouveau mot de passe, ouvrez ce lien :\n{link}\n\n"
                    f"Si vous n'êtes pas à l'origine de cette demande, ignorez ce message."
                ),
                from_email=settings.DEFAULT_FROM_EMAIL,
                recipient_list=[user.email],
            )
            logger.info(f"[AUTH] Password reset link sent to {user.email}")

        return Response({
            'message': "Si un compte existe pour cette adresse, un e-mail a été envoyé."
        })


class PasswordResetConfirmView(APIView):
    """Apply a new password from a reset link."""

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = PasswordResetConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            user_id = force_str(urlsafe_base64_decode(data['uid']))
            user = User.objects.get(pk=user_id)
        except (TypeError, ValueError, OverflowError, DjangoValidationError, User.DoesNotExist):
            user = None

        if user is None or not default_token_generator.check_token(user, data['token']):
            return Response(
                {'error': 'Lien de réinitialisation invalide ou expiré.'},
                status=status.HTTP_400_BAD_REQUEST
            )

        user.set_password(data['new_password'])
        user.save(update_fields=['password'])
        logger.info(f"[AUTH] Password reset for {user.email}")
        return Response({'message': 'Mot de passe mis à jour.'})
