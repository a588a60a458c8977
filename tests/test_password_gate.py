import pytest

from conftest import human_headers

from ishortn.errors import PlanRestrictionError
from ishortn.models.link_visit import LinkVisit, UniqueLinkVisit
from ishortn.services.cache import construct_cache_key
from ishortn.services.password import change_link_password, verify_link_password
from ishortn.utils.passwords import hash_password, verify_password
from ishortn.utils.workspace import Workspace


def test_protected_link_resolves_without_analytics(resolver, make_user, make_link):
    link = make_link(make_user(plan="pro"), password="s3cret")

    result = resolver.resolve("promo", "ishortn.ink", human_headers())

    assert result["id"] == link.id
    assert result["password_hash"]
    assert LinkVisit.query.count() == 0


def test_wrong_password_returns_none_and_writes_nothing(resolver, make_user, make_link):
    link = make_link(make_user(plan="pro"), password="s3cret")

    assert verify_link_password(resolver, link.id, "guess", human_headers()) is None

    assert LinkVisit.query.count() == 0
    assert UniqueLinkVisit.query.count() == 0


def test_correct_password_reveals_link_and_records_once(resolver, make_user, make_link):
    link = make_link(make_user(plan="pro"), password="s3cret")

    result = verify_link_password(resolver, link.id, "s3cret", human_headers())

    assert result["url"] == "https://example.com"
    assert LinkVisit.query.filter_by(link_id=link.id).count() == 1
    assert UniqueLinkVisit.query.filter_by(link_id=link.id).count() <= 1


def test_unknown_or_unprotected_link_is_not_verified(resolver, make_user, make_link):
    link = make_link(make_user(), alias="open")

    assert verify_link_password(resolver, link.id, "anything") is None
    assert verify_link_password(resolver, 9999, "anything") is None


def test_correct_password_from_bot_is_not_counted(resolver, make_user, make_link):
    link = make_link(make_user(plan="pro"), password="s3cret")

    result = verify_link_password(resolver, link.id, "s3cret", {"User-Agent": "curl/8.4.0"})

    assert result is not None
    assert LinkVisit.query.count() == 0


def test_verify_password_rejects_malformed_hash():
    assert verify_password("not-a-hash", "x") is False
    assert verify_password(None, "x") is False
    assert verify_password(hash_password("x"), "x") is True


def test_change_password_requires_paid_plan(make_user, make_link):
    user = make_user()
    link = make_link(user)
    workspace = Workspace(type="personal", user_id=user.id, plan="free")

    with pytest.raises(PlanRestrictionError):
        change_link_password(workspace, link.id, "s3cret")


def test_change_password_invalidates_cache(resolver, fake_redis, make_user, make_link):
    user = make_user(plan="pro")
    link = make_link(user)
    workspace = Workspace(type="personal", user_id=user.id, plan="pro")

    resolver.lookup("promo", "ishortn.ink")
    change_link_password(workspace, link.id, "s3cret")

    assert construct_cache_key("ishortn.ink", "promo") not in fake_redis.store
    assert resolver.lookup("promo", "ishortn.ink")["password_hash"]

    change_link_password(workspace, link.id, "")
    assert resolver.lookup("promo", "ishortn.ink")["password_hash"] is None
