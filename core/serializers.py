"""
Core App Serializers - User Management
"""

from rest_framework import serializers
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password

from .models import UserRole, City, normalize_phone, PHONE_PATTERN

User = get_user_model()


def _validate_cameroon_phone(value):
    import re
    clean = normalize_phone(value)
    if not re.match(PHONE_PATTERN, clean):
        raise serializers.ValidationError(
            "Numéro de téléphone valide requis (+237 6XX XXX XXX)"
        )
    return clean


class UserSerializer(serializers.ModelSerializer):
    """Serializer for User model (read operations + self profile update)."""

    commission_owed = serializers.DecimalField(
        max_digits=12, decimal_places=2, read_only=True
    )

    class Meta:
        model = User
        fields = [
            'id', 'email', 'full_name', 'phone_number', 'role', 'city',
            'wallet_balance', 'commission_owed', 'is_active', 'date_joined'
        ]
        read_only_fields = [
            'id', 'email', 'role', 'wallet_balance', 'is_active', 'date_joined'
        ]

    def validate_phone_number(self, value):
        return _validate_cameroon_phone(value)


class UserCreateSerializer(serializers.ModelSerializer):
    """Serializer for user registration (clients and drivers only)."""

    password = serializers.CharField(
        write_only=True,
        required=True,
        validators=[validate_password]
    )
    confirm_password = serializers.CharField(write_only=True, required=True)
    role = serializers.ChoiceField(
        choices=[UserRole.CLIENT, UserRole.DRIVER],
        default=UserRole.CLIENT
    )
    city = serializers.ChoiceField(choices=City.choices)

    class Meta:
        model = User
        fields = [
            'email', 'password', 'confirm_password', 'full_name',
            'phone_number', 'role', 'city'
        ]
        extra_kwargs = {
            'phone_number': {'required': True, 'allow_blank': False},
        }

    def validate_phone_number(self, value):
        return _validate_cameroon_phone(value)

    def validate(self, data):
        if data['password'] != data['confirm_password']:
            raise serializers.ValidationError(
                {'confirm_password': "Les mots de passe ne correspondent pas."}
            )
        return data

    def create(self, validated_data):
        validated_data.pop('confirm_password')
        return User.objects.create_user(
            email=validated_data['email'],
            password=validated_data['password'],
            full_name=validated_data['full_name'],
            phone_number=validated_data['phone_number'],
            role=validated_data.get('role', UserRole.CLIENT),
            city=validated_data['city'],
        )


class PasswordResetRequestSerializer(serializers.Serializer):
    """Request a password reset link by email."""

    email = serializers.EmailField()


class PasswordResetConfirmSerializer(serializers.Serializer):
    """Set a new password from a reset link."""

    uid = serializers.CharField()
    token = serializers.CharField()
    new_password = serializers.CharField(write_only=True, validators=[validate_password])
