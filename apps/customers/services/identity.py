"""
Customer identity resolution.

Turns CustomerLink rows into one displayable shape regardless of whether a
registered platform user or a local contact backs them.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from apps.accounts.models import User
from apps.customers.models import CustomerLink, CustomerKind, LocalCustomer

from .exceptions import CustomerNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedCustomer:
    id: object
    name: str
    secondary_label: str
    account_number_display: str
    kind: str
    is_profit_loss: bool = False
    phone: str = ''
    note: str = ''


def format_local_account_number(number: int) -> str:
    """Display form of a local account number, e.g. 7 -> 'L-0007'."""
    return f"L-{number:04d}"


def _from_registered(link: CustomerLink, profile: User) -> ResolvedCustomer:
    return ResolvedCustomer(
        id=link.id,
        name=profile.full_name or profile.username,
        secondary_label=f"@{profile.username}",
        account_number_display=str(profile.account_number),
        kind=CustomerKind.REGISTERED,
        phone=profile.phone,
    )


def _from_local(link: CustomerLink, local: LocalCustomer) -> ResolvedCustomer:
    return ResolvedCustomer(
        id=link.id,
        name=local.display_name,
        secondary_label=local.phone,
        account_number_display=format_local_account_number(local.local_account_number),
        kind=CustomerKind.LOCAL,
        is_profit_loss=local.is_profit_loss_account,
        phone=local.phone,
        note=local.note,
    )


def resolve_customer(link: CustomerLink) -> ResolvedCustomer:
    """
    Resolve one link.

    Raises:
        CustomerNotFoundError: If the backing profile or local row is gone
    """
    resolved = resolve_customer_links([link], skip_missing=False)
    return resolved[0]


def resolve_customer_links(
    links: Iterable[CustomerLink],
    skip_missing: bool = True
) -> List[ResolvedCustomer]:
    """
    Resolve many links with one batch query per backing kind.

    Links whose backing row is missing are skipped and logged when
    ``skip_missing`` is set (list views); otherwise they raise
    CustomerNotFoundError.
    """
    links = list(links)

    registered_ids = {link.registered_user_id for link in links if link.kind == CustomerKind.REGISTERED}
    local_ids = {link.local_customer_id for link in links if link.kind == CustomerKind.LOCAL}

    profiles = User.objects.in_bulk(list(registered_ids)) if registered_ids else {}
    locals_ = LocalCustomer.objects.in_bulk(list(local_ids)) if local_ids else {}

    resolved = []
    for link in links:
        customer: Optional[ResolvedCustomer] = None
        if link.kind == CustomerKind.REGISTERED and link.registered_user_id in profiles:
            customer = _from_registered(link, profiles[link.registered_user_id])
        elif link.kind == CustomerKind.LOCAL and link.local_customer_id in locals_:
            customer = _from_local(link, locals_[link.local_customer_id])

        if customer is None:
            if not skip_missing:
                raise CustomerNotFoundError(f"Customer {link.id} has no backing record")
            logger.warning(
                "Skipping customer link %s (%s): backing record missing", link.id, link.kind
            )
            continue
        resolved.append(customer)

    return resolved
