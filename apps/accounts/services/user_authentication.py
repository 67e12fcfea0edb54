"""User authentication service."""

from django.db import transaction
from django.db.models import Q
from django.contrib.auth import get_user_model
from django.utils import timezone

from .exceptions import InvalidCredentialsError, InactiveAccountError

User = get_user_model()


@transaction.atomic
def authenticate_user(*, login: str, password: str) -> User:
    """
    Authenticate user with email or username and password.

    Uses select_for_update() to prevent race conditions when updating last_login.

    Args:
        login: User's email or username
        password: User's password

    Returns:
        Authenticated User instance

    Raises:
        InvalidCredentialsError: If credentials are invalid
        InactiveAccountError: If account is deactivated
    """
    # Get user with lock to prevent race conditions on last_login
    try:
        user = (
            User.objects
            .select_for_update()
            .get(Q(email__iexact=login) | Q(username__iexact=login))
        )
    except User.DoesNotExist:
        raise InvalidCredentialsError("Invalid credentials")

    # Check password
    if not user.check_password(password):
        raise InvalidCredentialsError("Invalid credentials")

    # Check if active
    if not user.is_active:
        raise InactiveAccountError("Account is deactivated")

    # Update last login
    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])

    return user
