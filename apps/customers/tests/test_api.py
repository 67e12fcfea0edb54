import pytest
from unittest.mock import patch
from django.urls import reverse
from rest_framework import status

from apps.customers.models import CustomerLink, LocalCustomer
from apps.customers.services import add_local_customer, list_customers
from apps.ledger.services import record_movement
from apps.ledger.signals import get_ledger_revision


# =============================================================================
# Listing
# =============================================================================

@pytest.mark.django_db
class TestCustomerList:
    """Tests for GET /api/customers/"""

    def test_list_customers(self, authenticated_client, local_link, registered_link):
        response = authenticated_client.get(reverse('customers:customer-list'))

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data['results']) == 2
        assert 'revision' in response.data

    def test_list_excludes_other_owners(self, other_client, local_link):
        response = other_client.get(reverse('customers:customer-list'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['results'] == []

    def test_list_unauthenticated(self, api_client):
        response = api_client.get(reverse('customers:customer-list'))
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_list_shows_balances(self, authenticated_client, owner, local_link):
        record_movement(owner=owner, customer_link_id=local_link.id, movement_type='outgoing',
                        amount='75.50', currency='USD')

        response = authenticated_client.get(reverse('customers:customer-list'))

        balances = response.data['results'][0]['balances']
        assert balances[0]['currency'] == 'USD'
        assert balances[0]['balance'] == '-75.50'
        assert balances[0]['symbol'] == '$'

    def test_list_revision_not_newer_than_data(self, authenticated_client, owner, local_link,
                                               django_capture_on_commit_callbacks):
        before = get_ledger_revision(owner.id)

        def fetch_then_write(**kwargs):
            summaries = list_customers(**kwargs)
            with django_capture_on_commit_callbacks(execute=True):
                add_local_customer(owner=owner, display_name='Saeed')
            return summaries

        with patch('apps.customers.views.list_customers', side_effect=fetch_then_write):
            response = authenticated_client.get(reverse('customers:customer-list'))

        assert len(response.data['results']) == 1
        assert response.data['revision'] == before
        assert get_ledger_revision(owner.id) == before + 1


# =============================================================================
# Adding
# =============================================================================

@pytest.mark.django_db
class TestSearchProfiles:
    """Tests for GET /api/customers/search/"""

    def test_search_by_username(self, authenticated_client, ahmed):
        response = authenticated_client.get(reverse('customers:customer-search'), {'q': 'ahm'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data[0]['username'] == 'ahmed'
        assert response.data[0]['already_added'] is False

    def test_search_flags_existing_customers(self, authenticated_client, registered_link):
        response = authenticated_client.get(reverse('customers:customer-search'), {'q': 'ahmed'})
        assert response.data[0]['already_added'] is True

    def test_search_self(self, authenticated_client, owner):
        response = authenticated_client.get(
            reverse('customers:customer-search'), {'q': str(owner.account_number)}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'cannot_add_self'


@pytest.mark.django_db
class TestAddRegistered:
    """Tests for POST /api/customers/registered/"""

    def test_add(self, authenticated_client, ahmed):
        response = authenticated_client.post(
            reverse('customers:add-registered'), {'registered_user_id': str(ahmed.id)}
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['kind'] == 'registered'
        assert response.data['secondary_label'] == '@ahmed'

    def test_add_twice(self, authenticated_client, ahmed, registered_link):
        response = authenticated_client.post(
            reverse('customers:add-registered'), {'registered_user_id': str(ahmed.id)}
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['code'] == 'already_added'

    def test_add_self(self, authenticated_client, owner):
        response = authenticated_client.post(
            reverse('customers:add-registered'), {'registered_user_id': str(owner.id)}
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_add_unknown(self, authenticated_client):
        response = authenticated_client.post(
            reverse('customers:add-registered'),
            {'registered_user_id': '00000000-0000-0000-0000-000000000000'}
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestAddLocal:
    """Tests for POST /api/customers/local/"""

    def test_add(self, authenticated_client):
        response = authenticated_client.post(
            reverse('customers:add-local'), {'display_name': 'Saeed', 'phone': '770123456'}
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['account_number_display'] == 'L-0001'
        assert response.data['kind'] == 'local'

    def test_add_without_name(self, authenticated_client):
        response = authenticated_client.post(reverse('customers:add-local'), {'phone': '7'})
        assert response.status_code == status.HTTP_400_BAD_REQUEST


# =============================================================================
# Detail, edit, delete
# =============================================================================

@pytest.mark.django_db
class TestCustomerDetail:
    """Tests for /api/customers/{id}/"""

    def test_get(self, authenticated_client, local_link):
        url = reverse('customers:customer-detail', kwargs={'customer_id': local_link.id})
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['customer']['name'] == 'Mohammed'

    def test_get_other_owners_customer(self, other_client, local_link):
        url = reverse('customers:customer-detail', kwargs={'customer_id': local_link.id})
        response = other_client.get(url)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_patch_local(self, authenticated_client, local_link):
        url = reverse('customers:customer-detail', kwargs={'customer_id': local_link.id})
        response = authenticated_client.patch(url, {'note': 'pays monthly'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['note'] == 'pays monthly'

    def test_patch_registered(self, authenticated_client, registered_link):
        url = reverse('customers:customer-detail', kwargs={'customer_id': registered_link.id})
        response = authenticated_client.patch(url, {'display_name': 'X'}, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_delete(self, authenticated_client, local_link):
        url = reverse('customers:customer-detail', kwargs={'customer_id': local_link.id})
        response = authenticated_client.delete(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['deleted_movements'] == 0
        assert not CustomerLink.objects.filter(id=local_link.id).exists()
        assert not LocalCustomer.objects.filter(display_name='Mohammed').exists()

    def test_delete_with_balance_requires_acknowledgement(self, authenticated_client, owner, local_link):
        record_movement(owner=owner, customer_link_id=local_link.id, movement_type='incoming',
                        amount='40', currency='EUR')
        url = reverse('customers:customer-detail', kwargs={'customer_id': local_link.id})

        response = authenticated_client.delete(url)
        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['balances'][0]['currency'] == 'EUR'

        response = authenticated_client.delete(f'{url}?acknowledge_outstanding=true')
        assert response.status_code == status.HTTP_200_OK
        assert response.data['deleted_movements'] == 1

    def test_delete_profit_loss(self, authenticated_client, profit_loss_link):
        url = reverse('customers:customer-detail', kwargs={'customer_id': profit_loss_link.id})
        response = authenticated_client.delete(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'profit_loss_protected'


@pytest.mark.django_db
class TestResetAndPreview:

    def test_preview(self, authenticated_client, owner, local_link):
        record_movement(owner=owner, customer_link_id=local_link.id, movement_type='incoming',
                        amount='40', currency='EUR')
        url = reverse('customers:deletion-preview', kwargs={'customer_id': local_link.id})

        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['movement_count'] == 1
        assert response.data['has_outstanding_balance'] is True

    def test_reset(self, authenticated_client, owner, local_link):
        record_movement(owner=owner, customer_link_id=local_link.id, movement_type='incoming',
                        amount='40', currency='EUR')
        url = reverse('customers:reset', kwargs={'customer_id': local_link.id})

        response = authenticated_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['deleted_movements'] == 1
        assert CustomerLink.objects.filter(id=local_link.id).exists()

    def test_reset_profit_loss(self, authenticated_client, profit_loss_link):
        url = reverse('customers:reset', kwargs={'customer_id': profit_loss_link.id})
        response = authenticated_client.post(url)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_profit_loss_endpoint_is_idempotent(self, authenticated_client):
        first = authenticated_client.get(reverse('customers:profit-loss'))
        second = authenticated_client.get(reverse('customers:profit-loss'))

        assert first.status_code == status.HTTP_200_OK
        assert first.data['id'] == second.data['id']
        assert first.data['is_profit_loss'] is True
