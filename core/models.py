"""
CORE App - Custom User Model for KwiiGo

Handles: Users (Clients, Drivers, Admins)
"""

import re
import uuid
from decimal import Decimal

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.core.validators import RegexValidator
from django.db import models


class UserRole(models.TextChoices):
    """User role enumeration."""
    CLIENT = 'client', 'Client'
    DRIVER = 'driver', 'Chauffeur'
    ADMIN = 'admin', 'Administrateur'


class City(models.TextChoices):
    """Served cities."""
    YAOUNDE = 'yaounde', 'Yaoundé'
    DOUALA = 'douala', 'Douala'
    BAFOUSSAM = 'bafoussam', 'Bafoussam'


PHONE_PATTERN = r'^\+2376[0-9]{8}$'


def normalize_phone(value: str) -> str:
    """
    Normalise a Cameroon mobile number to +2376XXXXXXXX.

    Accepts "+237 6XX XXX XXX", "+2376XXXXXXXX" and the bare
    9-digit form "6XXXXXXXX". Anything else is returned stripped
    and left for the validator to reject.
    """
    clean = re.sub(r'[\s\-]', '', value or '')
    if len(clean) == 9 and clean.isdigit():
        clean = f"+237{clean}"
    elif clean.startswith('237') and len(clean) == 12:
        clean = f"+{clean}"
    return clean


class UserManager(BaseUserManager):
    """Custom user manager for email-based authentication."""

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("L'adresse e-mail est obligatoire")

        email = self.normalize_email(email)
        if extra_fields.get('phone_number'):
            extra_fields['phone_number'] = normalize_phone(extra_fields['phone_number'])

        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', UserRole.ADMIN)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as login identifier.

    Key Business Logic:
    - role is chosen at registration and never changes afterwards
    - wallet_balance goes NEGATIVE for drivers while they owe
      platform commission on completed deliveries
    """

    phone_regex = RegexValidator(
        regex=PHONE_PATTERN,
        message="Format: +237 6XX XXX XXX"
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True, verbose_name="Adresse e-mail")
    phone_number = models.CharField(
        max_length=15,
        blank=True,
        validators=[phone_regex],
        verbose_name="Téléphone"
    )

    # Profile
    full_name = models.CharField(max_length=150, verbose_name="Nom complet")
    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.CLIENT,
        verbose_name="Rôle"
    )
    city = models.CharField(
        max_length=20,
        choices=City.choices,
        blank=True,
        verbose_name="Ville"
    )

    # Commission balance (drivers)
    wallet_balance = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        verbose_name="Solde (XAF)"
    )

    # Django Auth Fields
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    date_joined = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['full_name']

    class Meta:
        verbose_name = "Utilisateur"
        verbose_name_plural = "Utilisateurs"
        ordering = ['-date_joined']

    def __str__(self):
        return f"{self.full_name or self.email} ({self.role})"

    @property
    def is_client(self) -> bool:
        return self.role == UserRole.CLIENT

    @property
    def is_driver(self) -> bool:
        return self.role == UserRole.DRIVER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def commission_owed(self) -> Decimal:
        """Amount the driver still has to remit to the platform."""
        if self.wallet_balance < 0:
            return -self.wallet_balance
        return Decimal('0.00')
