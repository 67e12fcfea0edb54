import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.customers.services import add_local_customer, add_registered_customer
from apps.ledger.services import record_movement


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
    )


@pytest.fixture
def ahmed(owner):
    """A registered customer of the owner."""
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
def post(owner):
    """Record a movement for the owner: post(link, type, amount, currency, commission=None)."""
    def _post(link, movement_type, amount, currency, commission=None):
        return record_movement(
            owner=owner,
            customer_link_id=link.id,
            movement_type=movement_type,
            amount=amount,
            currency=currency,
            commission_amount=commission,
        )
    return _post


@pytest.fixture
def authenticated_client(api_client, owner):
    """Return an API client authenticated as the owner."""
    refresh = RefreshToken.for_user(owner)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client
