"""User registration service."""
import logging

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction

from ..currency import DEFAULT_CURRENCY, SUPPORTED_CURRENCIES
from .exceptions import UserRegistrationError

logger = logging.getLogger(__name__)

User = get_user_model()


@transaction.atomic
def register_user(
    *,
    email: str,
    password: str,
    display_name: str = "",
    currency: str = DEFAULT_CURRENCY,
) -> User:
    """
    Register a new aviary owner.

    Args:
        email: User's email address
        password: User's password (will be hashed)
        display_name: Optional display name
        currency: Code of the currency money is shown in

    Returns:
        Created User instance

    Raises:
        UserRegistrationError: If the email is taken or the currency unknown
    """
    if currency not in SUPPORTED_CURRENCIES:
        raise UserRegistrationError(f"Unsupported currency '{currency}'")
    if User.objects.filter(email__iexact=email).exists():
        raise UserRegistrationError("A user with this email already exists")

    try:
        user = User.objects.create_user(
            email=email,
            password=password,
            display_name=display_name,
            preferences={'currency': currency},
        )
    except IntegrityError as e:
        raise UserRegistrationError(f"Registration failed: {e}") from e

    logger.info('Registered user %s', user.pk)
    return user
