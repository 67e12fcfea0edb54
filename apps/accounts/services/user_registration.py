"""User registration service."""

import logging

from django.db import transaction, IntegrityError
from django.contrib.auth import get_user_model

from .exceptions import UserRegistrationError

User = get_user_model()

logger = logging.getLogger(__name__)


def register_user(
    *,
    email: str,
    username: str,
    password: str,
    full_name: str = "",
    phone: str = "",
    max_retries: int = 5
) -> User:
    """
    Register a new user and assign the next global account number.

    The account number is computed as max + 1, so two concurrent
    registrations can collide on it. Each attempt runs in its own
    transaction and a collision simply retries with a fresh number.

    Args:
        email: User's email address
        username: Public handle (stored lowercase)
        password: User's password (will be hashed)
        full_name: Optional full name
        phone: Optional phone number
        max_retries: Maximum attempts to obtain a free account number

    Returns:
        Created User instance

    Raises:
        UserRegistrationError: If email or username is taken, or no
            account number could be assigned
    """
    username = username.lower()

    if User.objects.filter(email__iexact=email).exists():
        raise UserRegistrationError("Registration failed: email is already registered")
    if User.objects.filter(username__iexact=username).exists():
        raise UserRegistrationError("Registration failed: username is already taken")

    for attempt in range(max_retries):
        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    email=email,
                    password=password,
                    username=username,
                    full_name=full_name,
                    phone=phone,
                )
        except IntegrityError:
            # Account number collision with a concurrent registration
            logger.debug("Account number collision for %s (attempt %d)", username, attempt + 1)
            continue

        logger.info("Registered user %s with account number %d", user.username, user.account_number)
        return user

    raise UserRegistrationError(
        f"Registration failed: could not assign an account number after {max_retries} attempts"
    )
