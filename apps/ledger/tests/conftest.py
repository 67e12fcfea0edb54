import pytest
from django.core.cache import cache
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.customers.services import (
    add_local_customer,
    add_registered_customer,
    get_or_create_profit_loss_customer,
)
from apps.ledger.services import record_movement
from apps.ledger.signals import reset_refresh_state


@pytest.fixture(autouse=True)
def clean_refresh_state():
    """Start every test with empty revisions and no debounce history."""
    cache.clear()
    reset_refresh_state()
    yield
    cache.clear()
    reset_refresh_state()


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def owner(db):
    """Create and return the shop owner."""
    return User.objects.create_user(
        email='owner@example.com',
        password='TestPass123!',
        username='owner',
        full_name='Shop Owner',
    )


@pytest.fixture
def other_owner(db):
    """Create and return an unrelated owner."""
    return User.objects.create_user(
        email='other@example.com',
        password='TestPass123!',
        username='otherowner',
        full_name='Other Owner',
    )


@pytest.fixture
def ahmed(owner):
    """Ahmed, a registered user linked as the owner's customer."""
    profile = User.objects.create_user(
        email='ahmed@example.com',
        password='TestPass123!',
        username='ahmed',
        full_name='Ahmed',
    )
    return add_registered_customer(owner=owner, registered_user_id=profile.id)


@pytest.fixture
def mohammed(owner):
    """A local customer of the owner."""
    return add_local_customer(owner=owner, display_name='Mohammed')


@pytest.fixture
def profit_loss(owner):
    return get_or_create_profit_loss_customer(owner=owner)


@pytest.fixture
def post(owner):
    """Record a movement for the owner: post(link, type, amount, currency, commission=None)."""
    def _post(link, movement_type, amount, currency, commission=None, note=''):
        return record_movement(
            owner=owner,
            customer_link_id=link.id,
            movement_type=movement_type,
            amount=amount,
            currency=currency,
            commission_amount=commission,
            note=note,
        )
    return _post


@pytest.fixture
def authenticated_client(api_client, owner):
    """Return an API client authenticated as the owner."""
    refresh = RefreshToken.for_user(owner)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def other_client(other_owner):
    """Return an API client authenticated as the unrelated owner."""
    client = APIClient()
    refresh = RefreshToken.for_user(other_owner)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client
