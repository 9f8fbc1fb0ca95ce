from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password

from .currency import CURRENCIES, DEFAULT_CURRENCY, SUPPORTED_CURRENCIES
from .models import User

CURRENCY_CHOICES = [(currency.code, currency.name) for currency in CURRENCIES]


class UserSerializer(serializers.ModelSerializer):
    """Profile of the signed-in aviary owner."""

    currency = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'display_name',
            'currency',
            'created_at',
            'last_login',
            'preferences',
        ]
        read_only_fields = ['id', 'email', 'created_at', 'last_login']

    def validate_preferences(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError('Preferences must be an object')
        currency = value.get('currency', DEFAULT_CURRENCY)
        if currency not in SUPPORTED_CURRENCIES:
            raise serializers.ValidationError(f"Unsupported currency '{currency}'")
        return {**value, 'currency': currency}


class UserRegistrationSerializer(serializers.ModelSerializer):
    """Serializer for user registration."""

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
    currency = serializers.ChoiceField(choices=CURRENCY_CHOICES, default=DEFAULT_CURRENCY)

    class Meta:
        model = User
        fields = ['email', 'password', 'password_confirm', 'display_name', 'currency']

    def validate(self, attrs):
        """Validate password confirmation."""
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({
                'password_confirm': 'Passwords do not match'
            })
        return attrs


class UserLoginSerializer(serializers.Serializer):
    """Serializer for user login."""

    email = serializers.EmailField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )
