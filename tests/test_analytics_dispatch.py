"""
Analytics never stands between a visitor and the destination: failed writes
are contained, and the background pool records clicks under its own app
context.
"""
import pytest

from conftest import TestingConfig as BaseConfig, human_headers

from ishortn import create_app
from ishortn.extensions import db, get_link_resolver
from ishortn.models.link import Link
from ishortn.models.link_visit import LinkVisit, UniqueLinkVisit
from ishortn.models.user import User
from ishortn.services import analytics
from ishortn.services.analytics import RECORDED
from ishortn.utils.passwords import hash_password


def _boom(*args, **kwargs):
    raise RuntimeError("database went away")


def test_failed_visit_write_still_returns_destination(resolver, make_user, make_link, monkeypatch):
    link = make_link(make_user())
    monkeypatch.setattr(analytics, "log_visit", _boom)

    result = resolver.resolve("promo", "ishortn.ink", human_headers())

    assert result["url"] == "https://example.com"
    assert result["status"] == "active"
    assert LinkVisit.query.count() == 0
    # the unique-visit write is independent of the visit log
    assert UniqueLinkVisit.query.filter_by(link_id=link.id).count() == 1


def test_failed_usage_check_still_returns_destination(resolver, make_user, make_link, monkeypatch):
    make_link(make_user())
    monkeypatch.setattr(analytics, "register_event_usage", _boom)

    result = resolver.resolve("promo", "ishortn.ink", human_headers())

    assert result["url"] == "https://example.com"
    assert LinkVisit.query.count() == 0
    assert UniqueLinkVisit.query.count() == 0


def test_failed_task_resolves_future_to_none(app):
    future = app.extensions["analytics_dispatcher"].submit(_boom)

    assert future.result() is None


@pytest.fixture
def async_app(tmp_path, fake_redis):
    class BackgroundConfig(BaseConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'ishortn.db'}"
        ANALYTICS_ASYNC = True
        ANALYTICS_WORKERS = 2

    app = create_app(BackgroundConfig, redis_client=fake_redis)
    with app.app_context():
        yield app
        app.extensions["analytics_dispatcher"].shutdown(wait=True)
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


def test_background_pool_records_click(async_app):
    user = User(name="Owner", email="owner@example.com", password=hash_password("pw"))
    db.session.add(user)
    db.session.commit()
    link = Link(alias="promo", url="https://example.com", domain="ishortn.ink", user_id=user.id)
    db.session.add(link)
    db.session.commit()

    result = get_link_resolver().resolve("promo", "ishortn.ink", human_headers())
    async_app.extensions["analytics_dispatcher"].shutdown(wait=True)

    assert result["url"] == "https://example.com"
    db.session.expire_all()
    assert LinkVisit.query.filter_by(link_id=link.id).count() == 1
    assert UniqueLinkVisit.query.filter_by(link_id=link.id).count() == 1
    assert db.session.get(User, user.id).monthly_event_count == 1


def test_background_future_reports_outcome(async_app):
    user = User(name="Owner", email="owner@example.com", password=hash_password("pw"))
    db.session.add(user)
    db.session.commit()
    link = Link(alias="promo", url="https://example.com", domain="ishortn.ink", user_id=user.id)
    db.session.add(link)
    db.session.commit()

    resolver = get_link_resolver()
    record = resolver.lookup("promo", "ishortn.ink")
    future = resolver.record_click(record, human_headers())

    assert future.result(timeout=10) == RECORDED
