"""Tests for ledger refresh notifications."""

import pytest
from django.core.cache import caches

from apps.ledger.services import MovementValidationError
from apps.ledger.signals import (
    ledger_changed,
    dispatch_ledger_changed,
    get_ledger_revision,
    SCOPE_CUSTOMERS,
    SCOPE_MOVEMENTS,
)


@pytest.fixture
def received():
    """Collect ledger_changed sends for the duration of a test."""
    calls = []

    def receiver(sender, **kwargs):
        calls.append(kwargs)

    ledger_changed.connect(receiver, weak=False)
    yield calls
    ledger_changed.disconnect(receiver)


@pytest.mark.django_db
class TestLedgerChanged:

    def test_sent_after_commit(self, owner, post, mohammed, received, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            post(mohammed, 'incoming', '10', 'USD')

        assert len(received) == 1
        assert received[0]['owner_id'] == owner.id
        assert received[0]['scope'] == SCOPE_MOVEMENTS
        assert received[0]['link_ids'] == (mohammed.id,)
        assert get_ledger_revision(owner.id) == 1

    def test_not_sent_when_rolled_back(self, owner, post, mohammed, received,
                                       django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(MovementValidationError):
                post(mohammed, 'incoming', '10', 'USD', commission='10')

        assert callbacks == []
        assert received == []
        assert get_ledger_revision(owner.id) == 0

    def test_commission_notifies_both_customers(self, owner, post, mohammed, received,
                                                django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            recorded = post(mohammed, 'incoming', '10', 'USD', commission='1')

        assert set(received[0]['link_ids']) == {mohammed.id, recorded.commission.customer_link_id}

    def test_burst_is_debounced(self, owner, received, settings):
        settings.LEDGER_REFRESH_DEBOUNCE_MS = 60_000

        for _ in range(5):
            dispatch_ledger_changed(owner.id, SCOPE_MOVEMENTS)

        assert len(received) == 1
        assert get_ledger_revision(owner.id) == 5

    def test_scopes_debounced_separately(self, owner, received, settings):
        settings.LEDGER_REFRESH_DEBOUNCE_MS = 60_000

        dispatch_ledger_changed(owner.id, SCOPE_MOVEMENTS)
        dispatch_ledger_changed(owner.id, SCOPE_CUSTOMERS)

        assert [call['scope'] for call in received] == [SCOPE_MOVEMENTS, SCOPE_CUSTOMERS]

    def test_no_debounce_window(self, owner, received, settings):
        settings.LEDGER_REFRESH_DEBOUNCE_MS = 0

        dispatch_ledger_changed(owner.id, SCOPE_MOVEMENTS)
        dispatch_ledger_changed(owner.id, SCOPE_MOVEMENTS)

        assert [call['revision'] for call in received] == [1, 2]

    def test_revisions_are_per_owner(self, owner, other_owner):
        dispatch_ledger_changed(owner.id, SCOPE_MOVEMENTS)
        assert get_ledger_revision(owner.id) == 1
        assert get_ledger_revision(other_owner.id) == 0

    def test_revision_lives_in_configured_cache(self, owner):
        # Another worker sharing the cache has already advanced the counter
        caches['default'].set(f"ledger:revision:{owner.id}", 41, timeout=None)

        assert get_ledger_revision(owner.id) == 41
        dispatch_ledger_changed(owner.id, SCOPE_MOVEMENTS)
        assert caches['default'].get(f"ledger:revision:{owner.id}") == 42
