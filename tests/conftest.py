# tests/conftest.py
"""
Fixtures: a fresh app on in-memory SQLite per test, plus small factories
for users, routes and buses and a helper that builds Bearer headers.
"""
from __future__ import annotations

import pytest

from app import create_app
from auth_guard import issue_token
from config import TestingConfig
from db import db as _db
from models.bus import Bus
from models.route import Route
from models.user import User


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    seq = {"n": 0}

    def _make(role: str = "user", name: str | None = None, email: str | None = None, password: str = "secret123") -> User:
        seq["n"] += 1
        u = User(
            name=name or f"{role.title()} {seq['n']}",
            email=email or f"{role}{seq['n']}@bus.test",
            role=role,
        )
        u.set_password(password)
        _db.session.add(u)
        _db.session.commit()
        return u

    return _make


@pytest.fixture
def make_route(app):
    seq = {"n": 100}

    def _make(number: str | None = None, name: str | None = None, origin: str = "City Center",
              destination: str = "Airport", active: bool = True) -> Route:
        seq["n"] += 1
        r = Route(
            number=number or str(seq["n"]),
            name=name or f"{origin} - {destination}",
            origin=origin,
            destination=destination,
            distance="15 km",
            duration="45 min",
            frequency="Every 15 min",
            active=active,
        )
        _db.session.add(r)
        _db.session.commit()
        return r

    return _make


@pytest.fixture
def make_bus(app):
    seq = {"n": 0}

    def _make(route: Route | None = None, number: str | None = None, driver: User | None = None,
              capacity: int = 40, passengers: int = 0, eta: float = 0, active: bool = True,
              route_id: int | None = None) -> Bus:
        seq["n"] += 1
        b = Bus(
            number=number or f"BUS-{seq['n']:03d}",
            route_id=route.id if route is not None else route_id,
            driver_id=driver.id if driver is not None else None,
            capacity=capacity,
            current_passengers=passengers,
            lat=21.25,
            lng=81.63,
            eta=eta,
            active=active,
        )
        _db.session.add(b)
        _db.session.commit()
        return b

    return _make


@pytest.fixture
def auth_headers(app):
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {issue_token(user)}"}

    return _headers


@pytest.fixture
def admin_headers(make_user, auth_headers):
    return auth_headers(make_user("admin"))
