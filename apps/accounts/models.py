from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models
from django.db.models import Max
import uuid


class UserManager(BaseUserManager):
    """Custom user manager for email-based authentication."""

    def next_account_number(self):
        """Return the next free global account number (max + 1)."""
        current = self.get_queryset().aggregate(top=Max('account_number'))['top']
        return (current or 0) + 1

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('Email is required')
        if not extra_fields.get('username'):
            raise ValueError('Username is required')

        email = self.normalize_email(email)
        extra_fields['username'] = extra_fields['username'].lower()
        extra_fields.setdefault('account_number', self.next_account_number())

        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True')

        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Platform account.

    Every user is an owner of a private ledger and can, in turn, be added
    by other owners as a registered customer (found by username or by the
    global account number).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True, max_length=255, db_index=True)
    username = models.CharField(max_length=20, unique=True)
    full_name = models.CharField(max_length=150, blank=True)
    phone = models.CharField(max_length=30, blank=True)

    # Sequential, assigned at creation, never changes
    account_number = models.PositiveIntegerField(unique=True, editable=False)

    # Permissions
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    last_login = models.DateTimeField(null=True, blank=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    class Meta:
        db_table = 'users'
        indexes = [
            models.Index(fields=['email'], name='users_email_idx'),
            models.Index(fields=['created_at'], name='users_created_at_idx'),
        ]

    def __str__(self):
        return f"@{self.username}"

    def get_display_name(self):
        """Return full name or username."""
        return self.full_name or self.username


class ShopSettings(models.Model):
    """Branding printed on statements and receipts (one row per owner)."""

    owner = models.OneToOneField(
        'accounts.User',
        on_delete=models.CASCADE,
        primary_key=True,
        related_name='shop_settings'
    )
    shop_name = models.CharField(max_length=150, blank=True)
    shop_phone = models.CharField(max_length=30, blank=True)
    shop_address = models.CharField(max_length=255, blank=True)
    logo_data_uri = models.TextField(blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'shop_settings'

    def __str__(self):
        return self.shop_name or f"Shop of {self.owner}"
