"""Shop branding used by statements and receipts."""

from django.conf import settings
from django.db import transaction

from apps.accounts.models import User, ShopSettings


def get_shop_settings(*, owner: User) -> ShopSettings:
    """Return the owner's shop settings, creating an empty row on first access."""
    shop, _ = ShopSettings.objects.get_or_create(owner=owner)
    return shop


@transaction.atomic
def update_shop_settings(*, owner: User, **fields) -> ShopSettings:
    """
    Update branding fields for an owner.

    Only shop_name, shop_phone, shop_address and logo_data_uri are
    accepted; unknown keys raise TypeError.
    """
    allowed = {'shop_name', 'shop_phone', 'shop_address', 'logo_data_uri'}
    unknown = set(fields) - allowed
    if unknown:
        raise TypeError(f"Unknown shop settings: {', '.join(sorted(unknown))}")

    shop, _ = ShopSettings.objects.select_for_update().get_or_create(owner=owner)
    for name, value in fields.items():
        value = value or ''
        if name != 'logo_data_uri':
            value = value.strip()
        setattr(shop, name, value)
    shop.save()
    return shop


def get_branding(*, owner: User) -> dict:
    """
    Branding block handed to the statement/receipt formatter.

    Falls back to LEDGER_DEFAULT_SHOP_NAME when the owner has not named
    the shop yet.
    """
    shop = ShopSettings.objects.filter(owner=owner).first()
    return {
        'shop_name': (shop.shop_name if shop else '') or settings.LEDGER_DEFAULT_SHOP_NAME,
        'shop_phone': shop.shop_phone if shop else '',
        'shop_address': shop.shop_address if shop else '',
        'logo_data_uri': (shop.logo_data_uri if shop else '') or None,
    }
