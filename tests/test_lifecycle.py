"""Tests for listing status transitions."""
import datetime as dt

import pytest

from bazaar.errors import ArchivedError, ValidationError
from bazaar.models.listing import ListingStatus
from bazaar.services.lifecycle import (
    bump_extension_days,
    ensure_transition,
    expiry_after,
    is_terminal,
)


@pytest.mark.parametrize("current,target", [
    (ListingStatus.ACTIVE, ListingStatus.EXPIRED),
    (ListingStatus.ACTIVE, ListingStatus.ACTIVE),
    (ListingStatus.EXPIRED, ListingStatus.ACTIVE),
    (ListingStatus.EXPIRED, ListingStatus.ARCHIVED),
    ("active", "archived"),
])
def test_allowed_transitions(current, target):
    assert ensure_transition(current, target) == ListingStatus(target)


@pytest.mark.parametrize("target", list(ListingStatus))
def test_archived_is_terminal(target):
    assert is_terminal(ListingStatus.ARCHIVED)
    with pytest.raises(ArchivedError):
        ensure_transition(ListingStatus.ARCHIVED, target)


def test_expired_cannot_expire_again():
    with pytest.raises(ValidationError):
        ensure_transition(ListingStatus.EXPIRED, ListingStatus.EXPIRED)


def test_extension_days_by_payment():
    assert bump_extension_days(False) == 3
    assert bump_extension_days(True) == 7


def test_expiry_is_absolute_from_now():
    now = dt.datetime(2026, 3, 1, 8, 30)
    assert expiry_after(now, 3) == dt.datetime(2026, 3, 4, 8, 30)
