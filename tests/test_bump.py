"""Tests for bump eligibility and the bump write."""
import datetime as dt

import pytest

from bazaar.errors import ArchivedError, CooldownError, NotFoundError, NotOwnerError
from bazaar.models.listing import Listing, ListingStatus
from bazaar.services import bump as bump_service

from conftest import T0

HOUR = dt.timedelta(hours=1)


@pytest.fixture
def owner(make_user):
    return make_user(100)


@pytest.fixture
def listing(owner, make_listing):
    return make_listing(owner)


def test_free_bump_resets_expiry_from_now(db, owner, listing):
    t = T0 + dt.timedelta(days=1)
    bumped = bump_service.bump(db, listing.id, owner.id, paid=False, now=t)

    # остаток в 2 дня не суммируется
    assert bumped.expires_at == t + dt.timedelta(days=3)
    assert bumped.last_bumped_at == t
    assert bumped.bump_count == 1
    assert bumped.updated_at == t


def test_paid_bump_uses_paid_window(db, owner, listing):
    t = T0 + 2 * HOUR
    bumped = bump_service.bump(db, listing.id, owner.id, paid=True, now=t)
    assert bumped.expires_at == t + dt.timedelta(days=7)


def test_cooldown_scenario(db, owner, listing):
    bump_service.bump(db, listing.id, owner.id, now=T0)

    with pytest.raises(CooldownError) as exc:
        bump_service.bump(db, listing.id, owner.id, now=T0 + 23 * HOUR)
    assert exc.value.hours_remaining == 1

    decision = bump_service.can_bump(db, listing.id, owner.id, now=T0 + 23 * HOUR)
    assert decision.allowed is False
    assert decision.hours_until_eligible == 1

    bumped = bump_service.bump(db, listing.id, owner.id, now=T0 + 24 * HOUR)
    assert bumped.bump_count == 2
    assert bumped.expires_at == T0 + 24 * HOUR + dt.timedelta(days=3)


def test_hours_remaining_rounds_up(db, owner, listing):
    bump_service.bump(db, listing.id, owner.id, now=T0)
    # прошло 0.9 ч, осталось 23.1 ч
    decision = bump_service.can_bump(db, listing.id, owner.id, now=T0 + dt.timedelta(minutes=54))
    assert decision.hours_until_eligible == 24


def test_failed_bump_leaves_listing_untouched(db, owner, listing):
    bump_service.bump(db, listing.id, owner.id, now=T0)
    before = (listing.expires_at, listing.bump_count, listing.last_bumped_at)

    with pytest.raises(CooldownError):
        bump_service.bump(db, listing.id, owner.id, paid=True, now=T0 + HOUR)

    fresh = db.get(Listing, listing.id)
    assert (fresh.expires_at, fresh.bump_count, fresh.last_bumped_at) == before


def test_never_bumped_listing_is_eligible(db, owner, listing):
    decision = bump_service.can_bump(db, listing.id, owner.id, now=T0)
    assert decision.allowed is True
    assert decision.reason is None


def test_only_owner_can_bump(db, make_user, listing):
    stranger = make_user(200)
    with pytest.raises(NotOwnerError):
        bump_service.bump(db, listing.id, stranger.id, now=T0)
    assert bump_service.can_bump(db, listing.id, stranger.id, now=T0).allowed is False


def test_missing_listing(db, owner):
    with pytest.raises(NotFoundError):
        bump_service.bump(db, 999, owner.id, now=T0)
    decision = bump_service.can_bump(db, 999, owner.id, now=T0)
    assert decision.allowed is False
    assert decision.hours_until_eligible is None


def test_archived_listing_cannot_be_bumped(db, owner, make_listing):
    it = make_listing(owner, status=ListingStatus.ARCHIVED)
    with pytest.raises(ArchivedError):
        bump_service.bump(db, it.id, owner.id, now=T0 + dt.timedelta(days=10))
    assert bump_service.can_bump(db, it.id, owner.id, now=T0).allowed is False
    assert db.get(Listing, it.id).bump_count == 0


def test_concurrent_bump_loses_to_first_write(db, session_factory, owner, listing):
    # вторая сессия прочитала объявление до того, как первая его подняла
    other = session_factory()
    try:
        stale = other.get(Listing, listing.id)
        assert stale.last_bumped_at is None

        bump_service.bump(db, listing.id, owner.id, now=T0)

        with pytest.raises(CooldownError) as exc:
            bump_service.bump(other, listing.id, owner.id, now=T0 + HOUR)
        assert exc.value.hours_remaining == 23
    finally:
        other.close()

    assert db.get(Listing, listing.id, populate_existing=True).bump_count == 1


def test_time_until_next_bump(db, owner, listing):
    assert bump_service.time_until_next_bump(db, listing.id, now=T0) is None
    assert bump_service.time_until_next_bump(db, 999, now=T0) is None

    bump_service.bump(db, listing.id, owner.id, now=T0)
    assert bump_service.time_until_next_bump(db, listing.id, now=T0 + 20 * HOUR) == 4 * HOUR
    assert bump_service.time_until_next_bump(db, listing.id, now=T0 + 25 * HOUR) == dt.timedelta(0)
