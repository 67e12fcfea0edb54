from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, ShopSettings


class UserSerializer(serializers.ModelSerializer):
    """Basic user serializer for profile display."""

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'username',
            'full_name',
            'phone',
            'account_number',
            'created_at',
            'last_login',
        ]
        read_only_fields = ['id', 'email', 'username', 'account_number', 'created_at', 'last_login']


class UserRegistrationSerializer(serializers.Serializer):
    """Serializer for user registration."""

    email = serializers.EmailField(required=True)
    username = serializers.RegexField(
        regex=r'^[a-zA-Z0-9_]{3,20}$',
        required=True,
        error_messages={'invalid': 'Username must be 3-20 letters, digits or underscores'}
    )
    full_name = serializers.CharField(max_length=150, required=False, allow_blank=True, default='')
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True, default='')
    password = serializers.CharField(
        write_only=True,
        required=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )
    password_confirm = serializers.CharField(
        write_only=True,
        required=True,
        style={'input_type': 'password'}
    )

    def validate(self, attrs):
        """Validate password confirmation."""
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({
                'password_confirm': 'Passwords do not match'
            })
        return attrs


class UserLoginSerializer(serializers.Serializer):
    """Login with either email or username."""

    login = serializers.CharField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )


class UserPublicSerializer(serializers.ModelSerializer):
    """Public profile shown when another owner searches for customers."""

    class Meta:
        model = User
        fields = ['id', 'username', 'full_name', 'account_number']
        read_only_fields = fields


class ShopSettingsSerializer(serializers.ModelSerializer):
    """Owner branding for statements and receipts."""

    class Meta:
        model = ShopSettings
        fields = ['shop_name', 'shop_phone', 'shop_address', 'logo_data_uri', 'updated_at']
        read_only_fields = ['updated_at']

    def validate_logo_data_uri(self, value):
        if value and not value.startswith('data:image/'):
            raise serializers.ValidationError('Logo must be an image data URI')
        return value
