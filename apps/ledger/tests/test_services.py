"""
Service layer tests for ledger app.

Tests cover:
- Movement entry and commission splitting
- All-or-nothing commission writes
- Customer feeds and balances
- Internal transfers
- Editing and deleting movements
"""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import DatabaseError, IntegrityError
from django.utils import timezone

from apps.customers.services import CustomerNotFoundError, get_or_create_profit_loss_customer
from apps.ledger.models import Movement
from apps.ledger.services import (
    record_movement,
    record_internal_transfer,
    list_customer_movements,
    get_customer_balances,
    update_movement,
    delete_movement,
)
from apps.ledger.services.exceptions import (
    MovementValidationError,
    MovementNotFoundError,
    PartialWriteError,
)


# =============================================================================
# Movement entry
# =============================================================================

@pytest.mark.django_db
class TestRecordMovement:

    def test_plain_movement(self, post, mohammed):
        recorded = post(mohammed, 'incoming', '500', 'USD', note=' first ')

        assert recorded.commission is None
        assert recorded.primary.amount == Decimal('500.00')
        assert recorded.primary.note == 'first'
        assert Movement.objects.count() == 1

    def test_movement_numbers_increase(self, post, mohammed):
        first = post(mohammed, 'incoming', '1', 'USD').primary
        second = post(mohammed, 'outgoing', '1', 'USD').primary
        assert second.movement_number == first.movement_number + 1

    def test_commission_split(self, owner, post, mohammed):
        recorded = post(mohammed, 'incoming', '1000', 'YER', commission='50')
        commission = recorded.commission
        profit_loss = get_or_create_profit_loss_customer(owner=owner)

        assert commission.customer_link_id == profit_loss.id
        assert commission.is_commission_movement is True
        assert commission.related_commission_movement_id == recorded.primary.id
        assert commission.movement_type == 'incoming'
        assert commission.currency == 'YER'
        assert commission.amount == Decimal('50.00')
        assert commission.movement_number == recorded.primary.movement_number + 1
        assert commission.note == f"عمولة من Mohammed - حركة رقم {recorded.primary.movement_number}"

    def test_profit_loss_created_lazily(self, owner, post, mohammed):
        post(mohammed, 'incoming', '10', 'USD')
        assert not owner.local_customers.filter(is_profit_loss_account=True).exists()

        post(mohammed, 'incoming', '10', 'USD', commission='1')
        assert owner.local_customers.filter(is_profit_loss_account=True).count() == 1

    @pytest.mark.parametrize('amount,commission', [
        ('100', '100'),
        ('100', '150'),
        ('100', '0'),
        ('100', '-5'),
    ])
    def test_commission_out_of_range_writes_nothing(self, post, mohammed, amount, commission):
        with pytest.raises(MovementValidationError):
            post(mohammed, 'incoming', amount, 'USD', commission=commission)
        assert Movement.objects.count() == 0

    def test_commission_on_outgoing_rejected(self, post, mohammed):
        with pytest.raises(MovementValidationError):
            post(mohammed, 'outgoing', '100', 'USD', commission='5')
        assert Movement.objects.count() == 0

    @pytest.mark.parametrize('amount', ['0', '-10', 'abc', '1.234', 'NaN'])
    def test_invalid_amount(self, post, mohammed, amount):
        with pytest.raises(MovementValidationError):
            post(mohammed, 'incoming', amount, 'USD')
        assert Movement.objects.count() == 0

    def test_unknown_currency(self, post, mohammed):
        with pytest.raises(MovementValidationError):
            post(mohammed, 'incoming', '10', 'GBP')

    def test_unknown_movement_type(self, post, mohammed):
        with pytest.raises(MovementValidationError):
            post(mohammed, 'sideways', '10', 'USD')

    def test_direct_posting_to_profit_loss_rejected(self, post, profit_loss):
        with pytest.raises(MovementValidationError):
            post(profit_loss, 'incoming', '10', 'USD')

    def test_other_owners_customer(self, other_owner, mohammed):
        with pytest.raises(CustomerNotFoundError):
            record_movement(owner=other_owner, customer_link_id=mohammed.id,
                            movement_type='incoming', amount='10', currency='USD')

    def test_failed_commission_rolls_back_primary(self, post, mohammed):
        with patch(
            'apps.ledger.services.movement_entry.post_commission',
            side_effect=DatabaseError('disk full'),
        ):
            with pytest.raises(PartialWriteError) as exc_info:
                post(mohammed, 'incoming', '100', 'USD', commission='10')

        assert exc_info.value.rolled_back is True
        assert Movement.objects.count() == 0

    def test_number_collision_is_retried(self, post, mohammed):
        existing = post(mohammed, 'incoming', '1', 'USD').primary
        collide = iter([existing.movement_number, existing.movement_number + 1])

        with patch(
            'apps.ledger.services.movement_entry.next_movement_number',
            side_effect=lambda: next(collide),
        ):
            recorded = post(mohammed, 'incoming', '2', 'USD')

        assert recorded.primary.movement_number == existing.movement_number + 1

    def test_commission_number_collision_is_retried(self, post, mohammed):
        first = post(mohammed, 'incoming', '1', 'USD').primary
        taken = post(mohammed, 'incoming', '2', 'USD').primary
        Movement.objects.filter(id=first.id).delete()
        numbers = iter([first.movement_number, taken.movement_number + 1])

        with patch(
            'apps.ledger.services.movement_entry.next_movement_number',
            side_effect=lambda: next(numbers),
        ):
            recorded = post(mohammed, 'incoming', '100', 'USD', commission='10')

        assert recorded.primary.movement_number == taken.movement_number + 1
        assert recorded.commission.movement_number == taken.movement_number + 2
        assert Movement.objects.count() == 3

    def test_number_collision_gives_up(self, owner, mohammed):
        with patch.object(Movement.objects, 'create', side_effect=IntegrityError):
            with pytest.raises(RuntimeError):
                record_movement(owner=owner, customer_link_id=mohammed.id, movement_type='incoming',
                                amount='1', currency='USD', max_retries=2)


# =============================================================================
# Feed and balances
# =============================================================================

@pytest.mark.django_db
class TestFeedAndBalances:

    def test_ahmed_scenario(self, owner, post, ahmed):
        """500 USD in, 200 USD out, 1000 YER in with 50 commission."""
        post(ahmed, 'incoming', '500', 'USD')
        post(ahmed, 'outgoing', '200', 'USD')
        post(ahmed, 'incoming', '1000', 'YER', commission='50')

        result = get_customer_balances(owner=owner, link_id=ahmed.id)
        assert [(b.currency, b.balance) for b in result.balances] == [
            ('USD', Decimal('300.00')),
            ('YER', Decimal('1000.00')),
        ]

        profit_loss = get_or_create_profit_loss_customer(owner=owner)
        pl_result = get_customer_balances(owner=owner, link_id=profit_loss.id)
        assert [(b.currency, b.balance) for b in pl_result.balances] == [('YER', Decimal('50.00'))]

        feed = list_customer_movements(owner=owner, link_id=ahmed.id)
        assert len(feed.items) == 3
        latest = feed.items[0]
        assert latest.combined_amount == Decimal('1000.00')
        assert latest.net_amount == Decimal('950.00')

    def test_profit_loss_isolation(self, owner, post, mohammed):
        post(mohammed, 'incoming', '100', 'USD', commission='15')
        profit_loss = get_or_create_profit_loss_customer(owner=owner)

        customer_feed = list_customer_movements(owner=owner, link_id=mohammed.id)
        pl_feed = list_customer_movements(owner=owner, link_id=profit_loss.id)

        assert len(customer_feed.items) == 1
        item = customer_feed.items[0]
        assert (item.combined_amount, item.commission_amount, item.net_amount) == (
            Decimal('100.00'), Decimal('15.00'), Decimal('85.00')
        )
        assert pl_feed.customer.is_profit_loss is True
        assert [i.movement.is_commission_movement for i in pl_feed.items] == [True]

    def test_feed_most_recent_first(self, post, owner, mohammed):
        old = post(mohammed, 'incoming', '1', 'USD').primary
        new = post(mohammed, 'incoming', '2', 'USD').primary
        Movement.objects.filter(id=old.id).update(created_at=timezone.now() - timedelta(days=2))

        feed = list_customer_movements(owner=owner, link_id=mohammed.id)
        assert [i.movement.id for i in feed.items] == [new.id, old.id]

    def test_search_by_note_and_amount(self, post, owner, mohammed):
        post(mohammed, 'incoming', '250', 'USD', note='rent')
        post(mohammed, 'incoming', '75.25', 'SAR', note='fees')

        by_note = list_customer_movements(owner=owner, link_id=mohammed.id, search='RENT')
        by_amount = list_customer_movements(owner=owner, link_id=mohammed.id, search='250')
        by_decimal = list_customer_movements(owner=owner, link_id=mohammed.id, search='75.25')

        assert [i.movement.note for i in by_note.items] == ['rent']
        assert [i.movement.note for i in by_amount.items] == ['rent']
        assert [i.movement.note for i in by_decimal.items] == ['fees']

    def test_search_by_number_and_date(self, post, owner, mohammed):
        movement = post(mohammed, 'incoming', '9', 'USD').primary
        today = timezone.localtime(movement.created_at).date().isoformat()

        by_number = list_customer_movements(owner=owner, link_id=mohammed.id,
                                            search=str(movement.movement_number))
        by_date = list_customer_movements(owner=owner, link_id=mohammed.id, search=today)

        assert movement.id in [i.movement.id for i in by_number.items]
        assert [i.movement.id for i in by_date.items] == [movement.id]

    def test_summary_panel(self, post, owner, mohammed):
        post(mohammed, 'incoming', '70', 'EGP')
        post(mohammed, 'outgoing', '70', 'EGP')

        result = get_customer_balances(owner=owner, link_id=mohammed.id)
        assert result.balances == []
        assert result.summary[0].incoming_total == Decimal('70.00')
        assert result.summary[0].outgoing_total == Decimal('70.00')


# =============================================================================
# Transfers
# =============================================================================

@pytest.mark.django_db
class TestInternalTransfer:

    def test_transfer_creates_two_legs(self, owner, ahmed, mohammed):
        transfer = record_internal_transfer(owner=owner, from_link_id=ahmed.id, to_link_id=mohammed.id,
                                            amount='300', currency='SAR')

        assert transfer.incoming.customer_link_id == ahmed.id
        assert transfer.incoming.movement_type == 'incoming'
        assert transfer.outgoing.customer_link_id == mohammed.id
        assert transfer.outgoing.movement_type == 'outgoing'
        assert transfer.outgoing.movement_number == transfer.incoming.movement_number + 1
        for leg in (transfer.incoming, transfer.outgoing):
            assert leg.is_internal_transfer
            assert leg.transfer_group_id == transfer.transfer_group_id
            assert (leg.sender_name, leg.beneficiary_name) == ('Ahmed', 'Mohammed')

    def test_transfer_with_commission(self, owner, ahmed, mohammed):
        transfer = record_internal_transfer(owner=owner, from_link_id=ahmed.id, to_link_id=mohammed.id,
                                            amount='300', currency='SAR', commission_amount='10')

        assert transfer.commission.related_commission_movement_id == transfer.incoming.id
        assert transfer.commission.movement_number == transfer.incoming.movement_number + 2
        assert Movement.objects.count() == 3

    def test_same_customer_rejected(self, owner, ahmed):
        with pytest.raises(MovementValidationError):
            record_internal_transfer(owner=owner, from_link_id=ahmed.id, to_link_id=ahmed.id,
                                     amount='1', currency='USD')

    def test_profit_loss_rejected(self, owner, ahmed, profit_loss):
        with pytest.raises(MovementValidationError):
            record_internal_transfer(owner=owner, from_link_id=profit_loss.id, to_link_id=ahmed.id,
                                     amount='1', currency='USD')
        assert Movement.objects.count() == 0

    def test_failed_commission_rolls_back_both_legs(self, owner, ahmed, mohammed):
        real_create = Movement.objects.create

        def create(**kwargs):
            if kwargs.get('is_commission_movement'):
                raise DatabaseError('disk full')
            return real_create(**kwargs)

        with patch.object(Movement.objects, 'create', side_effect=create):
            with pytest.raises(PartialWriteError):
                record_internal_transfer(owner=owner, from_link_id=ahmed.id, to_link_id=mohammed.id,
                                         amount='300', currency='SAR', commission_amount='10')

        assert Movement.objects.count() == 0

    def test_commission_number_collision_is_retried(self, owner, post, ahmed, mohammed):
        first = post(mohammed, 'incoming', '1', 'USD').primary
        second = post(mohammed, 'incoming', '2', 'USD').primary
        taken = post(mohammed, 'incoming', '3', 'USD').primary
        Movement.objects.filter(id__in=[first.id, second.id]).delete()
        numbers = iter([first.movement_number, taken.movement_number + 1])

        with patch(
            'apps.ledger.services.movement_entry.next_movement_number',
            side_effect=lambda: next(numbers),
        ):
            transfer = record_internal_transfer(owner=owner, from_link_id=ahmed.id, to_link_id=mohammed.id,
                                                amount='300', currency='SAR', commission_amount='10')

        assert transfer.incoming.movement_number == taken.movement_number + 1
        assert transfer.commission.movement_number == taken.movement_number + 3
        assert Movement.objects.count() == 4


# =============================================================================
# Editing and deleting
# =============================================================================

@pytest.mark.django_db
class TestUpdateMovement:

    def test_update_amount_and_note(self, owner, post, mohammed):
        movement = post(mohammed, 'incoming', '100', 'USD').primary

        updated = update_movement(owner=owner, movement_id=movement.id, amount='120.50', note='fixed')

        assert updated.amount == Decimal('120.50')
        assert updated.note == 'fixed'

    def test_primary_cannot_drop_below_commission(self, owner, post, mohammed):
        recorded = post(mohammed, 'incoming', '100', 'USD', commission='30')

        with pytest.raises(MovementValidationError):
            update_movement(owner=owner, movement_id=recorded.primary.id, amount='30')

    def test_currency_change_follows_to_commission(self, owner, post, mohammed):
        recorded = post(mohammed, 'incoming', '100', 'USD', commission='30')

        update_movement(owner=owner, movement_id=recorded.primary.id, currency='EUR')

        recorded.commission.refresh_from_db()
        assert recorded.commission.currency == 'EUR'

    def test_commission_keeps_currency(self, owner, post, mohammed):
        recorded = post(mohammed, 'incoming', '100', 'USD', commission='30')

        with pytest.raises(MovementValidationError):
            update_movement(owner=owner, movement_id=recorded.commission.id, currency='EUR')

    def test_commission_must_stay_below_primary(self, owner, post, mohammed):
        recorded = post(mohammed, 'incoming', '100', 'USD', commission='30')

        with pytest.raises(MovementValidationError):
            update_movement(owner=owner, movement_id=recorded.commission.id, amount='100')
        update_movement(owner=owner, movement_id=recorded.commission.id, amount='99.99')

    def test_transfer_legs_stay_in_sync(self, owner, ahmed, mohammed):
        transfer = record_internal_transfer(owner=owner, from_link_id=ahmed.id, to_link_id=mohammed.id,
                                            amount='300', currency='SAR')

        update_movement(owner=owner, movement_id=transfer.outgoing.id, amount='350', currency='AED')

        transfer.incoming.refresh_from_db()
        assert (transfer.incoming.amount, transfer.incoming.currency) == (Decimal('350.00'), 'AED')

    def test_other_owner(self, other_owner, post, mohammed):
        movement = post(mohammed, 'incoming', '100', 'USD').primary
        with pytest.raises(MovementNotFoundError):
            update_movement(owner=other_owner, movement_id=movement.id, amount='1')


@pytest.mark.django_db
class TestDeleteMovement:

    def test_delete_primary_removes_commission(self, owner, post, mohammed):
        recorded = post(mohammed, 'incoming', '100', 'USD', commission='30')

        assert delete_movement(owner=owner, movement_id=recorded.primary.id) == 2
        assert Movement.objects.count() == 0

    def test_delete_commission_only(self, owner, post, mohammed):
        recorded = post(mohammed, 'incoming', '100', 'USD', commission='30')

        assert delete_movement(owner=owner, movement_id=recorded.commission.id) == 1
        assert Movement.objects.filter(id=recorded.primary.id).exists()

    def test_delete_transfer_leg_removes_pair(self, owner, ahmed, mohammed):
        transfer = record_internal_transfer(owner=owner, from_link_id=ahmed.id, to_link_id=mohammed.id,
                                            amount='300', currency='SAR', commission_amount='5')

        assert delete_movement(owner=owner, movement_id=transfer.outgoing.id) == 3
        assert Movement.objects.count() == 0

    def test_missing(self, owner, mohammed):
        import uuid
        with pytest.raises(MovementNotFoundError):
            delete_movement(owner=owner, movement_id=uuid.uuid4())
