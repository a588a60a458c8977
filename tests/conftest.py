"""Pytest configuration and fixtures for the link service."""

import datetime
import os

# Config reads these at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
import redis

from ishortn import create_app
from ishortn.config import Config
from ishortn.extensions import db, get_link_cache, get_link_resolver
from ishortn.models.link import Link
from ishortn.models.subscription import Subscription
from ishortn.models.team import Team, TeamMember
from ishortn.models.user import User
from ishortn.utils.jwt_helper import encode_token
from ishortn.utils.passwords import hash_password

HUMAN_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    DEFAULT_DOMAIN = "ishortn.ink"
    REDIS_TTL = 300
    ANALYTICS_ASYNC = False
    USAGE_ALERT_WEBHOOK_URL = None
    USAGE_TIMEZONE = "UTC"


class FakeRedis:
    """In-process stand-in for the redis client: get / setex / delete / ping."""

    def __init__(self):
        self.store = {}
        self.ttls = {}
        self.get_calls = 0
        self.fail = False

    def _check(self):
        if self.fail:
            raise redis.ConnectionError("redis is down")

    def ping(self):
        self._check()
        return True

    def get(self, key):
        self._check()
        self.get_calls += 1
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self._check()
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def app(fake_redis):
    app = create_app(TestingConfig, redis_client=fake_redis)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def resolver(app):
    return get_link_resolver()


@pytest.fixture
def cache(app):
    return get_link_cache()


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make_user(plan=None, email=None, **fields):
        counter["n"] += 1
        user = User(
            name=f"User {counter['n']}",
            email=email or f"user{counter['n']}@example.com",
            password=hash_password("password123"),
            **fields,
        )
        db.session.add(user)
        db.session.commit()

        if plan in ("pro", "ultra"):
            db.session.add(Subscription(user_id=user.id, status="active", plan=plan))
            db.session.commit()

        return user

    return _make_user


@pytest.fixture
def make_link(app):
    def _make_link(user, alias="promo", url="https://example.com", domain="ishortn.ink", password=None, **fields):
        link = Link(
            alias=alias,
            url=url,
            domain=domain,
            user_id=user.id,
            password_hash=hash_password(password) if password else None,
            **fields,
        )
        db.session.add(link)
        db.session.commit()
        return link

    return _make_link


@pytest.fixture
def make_team(app):
    def _make_team(owner, members=()):
        team = Team(name="Acme", slug=f"acme-{owner.id}", owner_id=owner.id)
        db.session.add(team)
        db.session.commit()
        db.session.add(TeamMember(team_id=team.id, user_id=owner.id, role="owner"))
        for member in members:
            db.session.add(TeamMember(team_id=team.id, user_id=member.id, role="member"))
        db.session.commit()
        return team

    return _make_team


@pytest.fixture
def auth_headers(app):
    def _auth_headers(user, team=None):
        headers = {"Authorization": f"Bearer {encode_token(user.id)}"}
        if team is not None:
            headers["X-Team-Id"] = str(team.id)
        return headers

    return _auth_headers


def human_headers(ip="203.0.113.7", **extra):
    headers = {"User-Agent": HUMAN_UA, "X-Forwarded-For": ip}
    headers.update(extra)
    return headers


def days_ago(days):
    return datetime.datetime.utcnow() - datetime.timedelta(days=days)
