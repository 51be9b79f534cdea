"""
Shared fixtures: an in-memory database, a fixed clock and a small world of
two networks.
"""

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from werkzeug.security import generate_password_hash

from sleep_registry.database import create_schema
from sleep_registry.models import Role, User, UserId
from sleep_registry.services import build_services

# Local noon, so "today" never straddles midnight.
NOW = int(datetime(2024, 5, 15, 12, 0).timestamp() * 1000)
PASSWORD = "s3cret-pass"
PASSWORD_HASH = generate_password_hash(PASSWORD)


class FakeClock:
    """Callable returning a controllable epoch-ms timestamp."""
    def __init__(self, now: int):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int):
        self.now += ms


# ── Helpers ──────────────────────────────────────────────────────────

def add_user(services, email, role, created_by=None, is_active=True, name=None):
    user = User(
        id=UserId.new(),
        email=email,
        hashed_password=PASSWORD_HASH,
        role=role,
        name=name or email.split("@")[0],
        created_at=NOW,
        updated_at=NOW,
        is_active=is_active,
        created_by=created_by.id if created_by else None,
    )
    services.store.insert_user(user)
    return user


def add_main_head(services, email, **kwargs):
    return add_user(services, email, Role.MAIN_HEAD, **kwargs)


def add_doctor(services, main_head, email, **kwargs):
    return add_user(services, email, Role.DOCTOR, created_by=main_head, **kwargs)


def add_patient(services, user, **fields):
    form = {"ipd_opd_no": "OPD-1", "date": NOW}
    form.update(fields)
    return services.patients.create_patient(user, form)


# ── Fixtures ─────────────────────────────────────────────────────────

@pytest.fixture
def clock():
    return FakeClock(NOW)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        future=True,
    )
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def services(engine, clock):
    return build_services(engine, clock)


class World:
    """M1 created D1 and D2; M2 created D3."""
    def __init__(self, services):
        self.m1 = add_main_head(services, "m1@example.com")
        self.m2 = add_main_head(services, "m2@example.com")
        self.d1 = add_doctor(services, self.m1, "d1@example.com")
        self.d2 = add_doctor(services, self.m1, "d2@example.com")
        self.d3 = add_doctor(services, self.m2, "d3@example.com")


@pytest.fixture
def world(services):
    return World(services)
