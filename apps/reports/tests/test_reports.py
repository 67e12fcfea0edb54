from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from apps.ledger.models import Movement
from apps.reports.exceptions import InvalidDateRangeError
from apps.reports.reports import ReportQueries


@pytest.mark.django_db
class TestOwnerOverview:

    def test_empty_ledger(self, owner):
        overview = ReportQueries.owner_overview(owner=owner)

        assert overview['customers_count'] == 0
        assert overview['movements_count'] == 0
        assert overview['currency_totals'] == []
        assert overview['recent_movements'] == []

    def test_counts_exclude_profit_loss(self, owner, ahmed, mohammed, post):
        post(ahmed, 'incoming', '1000', 'YER', commission='50')
        post(mohammed, 'outgoing', '200', 'USD')

        overview = ReportQueries.owner_overview(owner=owner)

        assert overview['customers_count'] == 2
        assert overview['movements_count'] == 2

    def test_totals_and_commission_income(self, owner, ahmed, post):
        post(ahmed, 'incoming', '500', 'USD')
        post(ahmed, 'outgoing', '200', 'USD')
        post(ahmed, 'incoming', '1000', 'YER', commission='50')

        overview = ReportQueries.owner_overview(owner=owner)

        usd, yer = overview['currency_totals']
        assert (usd['currency'], usd['incoming_total'], usd['outgoing_total'], usd['balance']) == (
            'USD', Decimal('500.00'), Decimal('200.00'), Decimal('300.00')
        )
        assert yer['balance'] == Decimal('1000.00')
        assert overview['commission_income'] == [{'currency': 'YER', 'total': Decimal('50.00')}]

    def test_recent_movements(self, owner, mohammed, post):
        for amount in range(1, 8):
            post(mohammed, 'incoming', str(amount), 'USD')

        recent = ReportQueries.owner_overview(owner=owner)['recent_movements']

        assert len(recent) == 5
        assert recent[0]['amount'] == Decimal('7.00')
        assert recent[0]['customer_name'] == 'Mohammed'

    def test_period(self, owner, mohammed, post):
        old = post(mohammed, 'incoming', '10', 'USD').primary
        post(mohammed, 'incoming', '20', 'USD')
        Movement.objects.filter(id=old.id).update(created_at=timezone.now() - timedelta(days=60))
        today = timezone.localdate()

        overview = ReportQueries.owner_overview(owner=owner, start_date=today, end_date=today)

        assert overview['movements_count'] == 1
        assert overview['currency_totals'][0]['incoming_total'] == Decimal('20.00')

    def test_reversed_period(self, owner):
        with pytest.raises(InvalidDateRangeError):
            ReportQueries.owner_overview(owner=owner, start_date=date(2026, 2, 1), end_date=date(2026, 1, 1))


@pytest.mark.django_db
class TestOverviewEndpoint:
    """Tests for GET /api/reports/overview/"""

    def test_overview(self, authenticated_client, ahmed, post):
        post(ahmed, 'incoming', '100', 'SAR', commission='5')

        response = authenticated_client.get(reverse('reports:overview'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['customers_count'] == 1
        assert response.data['commission_income'][0]['total'] == '5.00'
        assert response.data['recent_movements'][0]['customer_name'] == 'Ahmed'

    def test_overview_period(self, authenticated_client):
        response = authenticated_client.get(reverse('reports:overview'), {'period': '2026-02'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['period_start'] == '2026-02-01'
        assert response.data['period_end'] == '2026-02-28'

    def test_overview_reversed_dates(self, authenticated_client):
        response = authenticated_client.get(
            reverse('reports:overview'), {'start_date': '2026-03-01', 'end_date': '2026-02-01'}
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_overview_unauthenticated(self, api_client):
        response = api_client.get(reverse('reports:overview'))
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
