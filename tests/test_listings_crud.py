"""Tests for listing creation, editing and deletion."""
import datetime as dt

import pytest

from bazaar.errors import ArchivedError, NotFoundError, NotOwnerError, ValidationError
from bazaar.models.listing import Listing, ListingStatus
from bazaar.services import listings as listing_service

from conftest import BrokenNotifier, RecordingNotifier, T0

VALID = {"title": "  Desk lamp ", "description": "Warm light", "price": 2500, "category": "home"}


def test_create_sets_lifecycle_defaults(db, make_user):
    owner = make_user(100)
    it = listing_service.create_listing(db, owner, VALID, now=T0)

    assert it.id is not None
    assert it.title == "Desk lamp"
    assert it.status == ListingStatus.ACTIVE
    assert it.expires_at == T0 + dt.timedelta(days=3)
    assert it.last_bumped_at is None
    assert it.bump_count == 0
    assert it.owner_tg_id == 100
    assert it.is_payment_pending is False


@pytest.mark.parametrize("override", [
    {"title": ""},
    {"title": "   "},
    {"title": "x" * 201},
    {"description": None},
    {"price": -1},
    {"price": 100_000_001},
    {"price": True},
    {"price": 10.5},
    {"category": "weapons"},
])
def test_create_rejects_invalid_payload(db, make_user, override):
    with pytest.raises(ValidationError):
        listing_service.create_listing(db, make_user(100), {**VALID, **override}, now=T0)
    assert db.query(Listing).count() == 0


@pytest.mark.parametrize("price", [0, 100_000_000])
def test_price_bounds_are_inclusive(db, make_user, price):
    it = listing_service.create_listing(db, make_user(100), {**VALID, "price": price}, now=T0)
    assert it.price == price


def test_get_listing_missing(db):
    with pytest.raises(NotFoundError):
        listing_service.get_listing(db, 1)


def test_owner_can_update(db, make_user, make_listing):
    owner = make_user(100)
    it = make_listing(owner)

    updated = listing_service.update_listing(db, it.id, owner, {"price": 9000, "title": "Road bike"},
                                             now=T0 + dt.timedelta(hours=2))
    assert updated.price == 9000
    assert updated.title == "Road bike"
    assert updated.category == "sports"
    assert updated.updated_at == T0 + dt.timedelta(hours=2)
    # правка не продлевает срок
    assert updated.expires_at == T0 + dt.timedelta(days=3)


def test_update_rules(db, make_user, make_listing):
    owner, stranger = make_user(100), make_user(200)
    it = make_listing(owner)

    with pytest.raises(NotOwnerError):
        listing_service.update_listing(db, it.id, stranger, {"price": 1})
    with pytest.raises(ValidationError):
        listing_service.update_listing(db, it.id, owner, {"category": "nope"})

    archived = make_listing(owner, status=ListingStatus.ARCHIVED)
    with pytest.raises(ArchivedError):
        listing_service.update_listing(db, archived.id, owner, {"price": 1})


def test_owner_deletes_without_notification(db, make_user, make_listing, notifier):
    owner = make_user(100)
    it = make_listing(owner)

    listing_service.delete_listing(db, it.id, owner, notifier=notifier)
    assert db.get(Listing, it.id) is None
    assert notifier.sent == []


def test_admin_delete_notifies_owner(db, make_user, make_listing, notifier):
    owner, admin = make_user(100), make_user(1, role="admin")
    it = make_listing(owner)

    listing_service.delete_listing(db, it.id, admin, is_admin=True, notifier=notifier)
    assert db.get(Listing, it.id) is None
    assert notifier.sent[0][0] == 100


def test_admin_delete_ignores_notification_failure(db, make_user, make_listing):
    owner, admin = make_user(100), make_user(1, role="admin")
    it = make_listing(owner)

    listing_service.delete_listing(db, it.id, admin, is_admin=True, notifier=RecordingNotifier(fail=True))
    assert db.get(Listing, it.id) is None


def test_stranger_cannot_delete(db, make_user, make_listing):
    it = make_listing(make_user(100))
    with pytest.raises(NotOwnerError):
        listing_service.delete_listing(db, it.id, make_user(200))


def test_admin_delete_ignores_unexpected_notifier_error(db, make_user, make_listing):
    owner, admin = make_user(100), make_user(1, role="admin")
    it = make_listing(owner)

    assert listing_service.delete_listing(db, it.id, admin, is_admin=True, notifier=BrokenNotifier()) == it.id
    assert db.get(Listing, it.id) is None
