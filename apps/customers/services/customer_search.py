"""Finding platform users to add as registered customers."""

from typing import List

from django.db.models import Q

from apps.accounts.models import User

from .exceptions import CannotAddSelfError

SEARCH_LIMIT = 10


def search_registered_profiles(*, owner: User, query: str, limit: int = SEARCH_LIMIT) -> List[User]:
    """
    Match platform users by account number or username.

    An all-digit query matches the account number exactly; anything else
    matches usernames case-insensitively by substring. The owner is never
    returned.

    Raises:
        CannotAddSelfError: If the query names the owner exactly
    """
    query = (query or '').strip().lstrip('@')
    if not query:
        return []

    if query.isdigit():
        if int(query) == owner.account_number:
            raise CannotAddSelfError("You cannot add yourself as a customer")
        condition = Q(account_number=int(query))
    else:
        if query.lower() == owner.username.lower():
            raise CannotAddSelfError("You cannot add yourself as a customer")
        condition = Q(username__icontains=query)

    return list(
        User.objects
        .filter(condition, is_active=True)
        .exclude(id=owner.id)
        .order_by('username')[:limit]
    )
