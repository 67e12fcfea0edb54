"""
Ledger refresh notifications.

Every committed ledger write bumps a per-owner revision counter kept in
the Django cache and sends ``ledger_changed`` so list and detail views
can reload. Sends for the same owner and scope that arrive inside
``LEDGER_REFRESH_DEBOUNCE_MS`` of the previous one are dropped; the
revision still advances, so a client comparing revisions never misses a
change.
"""

import logging
import threading
import time

from django.conf import settings
from django.core.cache import cache
from django.db import transaction
from django.dispatch import Signal

logger = logging.getLogger(__name__)

SCOPE_MOVEMENTS = 'movements'
SCOPE_CUSTOMERS = 'customers'
SCOPE_ALL = 'all'

# Sent with owner_id, scope, link_ids and revision
ledger_changed = Signal()

_last_sent = {}
_last_sent_lock = threading.Lock()


def _revision_key(owner_id) -> str:
    return f"ledger:revision:{owner_id}"


def get_ledger_revision(owner_id) -> int:
    """Current revision for an owner; 0 before the first write."""
    return cache.get(_revision_key(owner_id), 0)


def bump_ledger_revision(owner_id) -> int:
    key = _revision_key(owner_id)
    cache.add(key, 0, timeout=None)
    try:
        return cache.incr(key)
    except ValueError:
        # Evicted between add() and incr()
        cache.set(key, 1, timeout=None)
        return 1


def _should_send(owner_id, scope) -> bool:
    window = settings.LEDGER_REFRESH_DEBOUNCE_MS / 1000
    now = time.monotonic()
    with _last_sent_lock:
        last = _last_sent.get((owner_id, scope))
        if last is not None and now - last < window:
            return False
        _last_sent[(owner_id, scope)] = now
    return True


def dispatch_ledger_changed(owner_id, scope, link_ids=()):
    """Bump the revision and send the signal unless debounced."""
    revision = bump_ledger_revision(owner_id)

    if not _should_send(owner_id, scope):
        logger.debug(
            "Refresh for owner %s (%s) suppressed, revision %d", owner_id, scope, revision
        )
        return revision

    logger.debug("Refresh for owner %s (%s) sent, revision %d", owner_id, scope, revision)
    ledger_changed.send(
        sender=None,
        owner_id=owner_id,
        scope=scope,
        link_ids=tuple(link_ids),
        revision=revision,
    )
    return revision


def notify_ledger_changed(*, owner_id, scope: str = SCOPE_MOVEMENTS, link_ids=()) -> None:
    """Schedule a refresh notification for when the current transaction commits."""
    link_ids = tuple(link_ids)
    transaction.on_commit(lambda: dispatch_ledger_changed(owner_id, scope, link_ids))


def reset_refresh_state() -> None:
    """Forget debounce timestamps (used between test cases)."""
    with _last_sent_lock:
        _last_sent.clear()
