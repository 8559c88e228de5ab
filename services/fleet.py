# services/fleet.py
"""
Fleet mutations: routes, buses, driver assignment, telemetry.

Every call changes one entity, commits, and returns the updated model.
The only exception is delete_driver(), which clears the driver on all of
their buses before removing the user row.

Public API:
  - report_telemetry(bus_id, lat, lng, passengers=None, eta=None) -> Bus
  - assign_driver(bus_id, driver_id) -> Bus
  - toggle_bus_status(bus_id) -> Bus
  - get_route(route_id) / create_route(**fields) / update_route(route_id, **fields) / delete_route(route_id)
  - get_bus(bus_id) / list_buses() / create_bus(**fields) / update_bus(bus_id, **fields) / delete_bus(bus_id)
  - list_drivers() / list_users() / create_driver(name, email, password) / delete_driver(user_id)
  - fleet_stats() -> dict

Errors (services.errors):
  NotFound, Conflict, InvalidAssignment, ValidationFailure

No bounds are enforced on passenger count vs. capacity or on eta sign:
drivers may report whatever the device reads; screens clamp for display.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload

from db import db
from models.bus import Bus
from models.route import Route
from models.user import User
from services.errors import Conflict, InvalidAssignment, NotFound, ValidationFailure

ROUTE_TEXT_FIELDS = ("number", "name", "origin", "destination", "distance", "duration", "frequency")


# ---------- small utils ----------

def _require_text(value: Any, field: str) -> str:
    s = "" if value is None else str(value).strip()
    if not s:
        raise ValidationFailure(f"{field} is required")
    return s


def _as_float(value: Any, field: str) -> float:
    if value is None or isinstance(value, bool):
        raise ValidationFailure(f"{field} must be a number")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationFailure(f"{field} must be a number")


def _as_int(value: Any, field: str) -> int:
    if value is None or isinstance(value, bool):
        raise ValidationFailure(f"{field} must be an integer")
    try:
        f = float(value)
    except (TypeError, ValueError):
        raise ValidationFailure(f"{field} must be an integer")
    if not f.is_integer():
        raise ValidationFailure(f"{field} must be an integer")
    return int(f)


def _as_bool(value: Any, field: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationFailure(f"{field} must be true or false")
    return value


def _capacity(value: Any) -> int:
    cap = _as_int(value, "capacity")
    if cap <= 0:
        raise ValidationFailure("capacity must be a positive integer")
    return cap


def _commit(conflict_msg: str) -> None:
    """Commit, turning a unique-key race into Conflict."""
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict(conflict_msg)


def _bus_query():
    return Bus.query.options(joinedload(Bus.route), joinedload(Bus.driver))


def _pk(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _driver_or_raise(driver_id: Any) -> User:
    pk = _pk(driver_id)
    user = db.session.get(User, pk) if pk is not None else None
    if user is None or not user.is_driver:
        raise InvalidAssignment("Invalid driver")
    return user


def _route_or_raise(route_id: Any) -> Route:
    pk = _pk(route_id)
    route = db.session.get(Route, pk) if pk is not None else None
    if route is None:
        raise NotFound("Route not found")
    return route


# ---------- telemetry / assignment ----------

def report_telemetry(
    bus_id: int,
    lat: Any,
    lng: Any,
    passengers: Any = None,
    eta: Any = None,
) -> Bus:
    bus = db.session.get(Bus, bus_id)
    if bus is None:
        raise NotFound("Bus not found")

    lat, lng = _as_float(lat, "lat"), _as_float(lng, "lng")
    if passengers is not None:
        passengers = _as_int(passengers, "currentPassengers")
    if eta is not None:
        eta = _as_float(eta, "eta")

    bus.lat, bus.lng = lat, lng
    if passengers is not None:
        bus.current_passengers = passengers
    if eta is not None:
        bus.eta = eta
    bus.touch()
    db.session.commit()

    current_app.logger.info(
        "[fleet] telemetry bus=%s lat=%.6f lng=%.6f pax=%s eta=%s",
        bus.number, bus.lat, bus.lng, bus.current_passengers, bus.eta,
    )
    return bus


def assign_driver(bus_id: int, driver_id: Optional[int]) -> Bus:
    """Assign `driver_id` to the bus, or clear the driver when it is None."""
    bus = db.session.get(Bus, bus_id)
    if bus is None:
        raise NotFound("Bus not found")
    if driver_id is not None:
        driver_id = _driver_or_raise(driver_id).id

    bus.driver_id = driver_id
    db.session.commit()
    current_app.logger.info("[fleet] bus=%s driver → %s", bus.number, driver_id)
    return _bus_query().filter(Bus.id == bus.id).one()


def toggle_bus_status(bus_id: int) -> Bus:
    bus = db.session.get(Bus, bus_id)
    if bus is None:
        raise NotFound("Bus not found")
    bus.active = not bool(bus.active)
    db.session.commit()
    current_app.logger.info("[fleet] bus=%s active=%s", bus.number, bus.active)
    return bus


# ---------- routes ----------

def get_route(route_id: int) -> Route:
    return _route_or_raise(route_id)


def create_route(**fields: Any) -> Route:
    values = {f: _require_text(fields.get(f), f) for f in ROUTE_TEXT_FIELDS}
    if Route.query.filter(Route.number == values["number"]).first():
        raise Conflict("Route number already exists")

    route = Route(**values, active=_as_bool(fields.get("active", True), "active"))
    db.session.add(route)
    _commit("Route number already exists")
    current_app.logger.info("[fleet] route created id=%s number=%s", route.id, route.number)
    return route


def update_route(route_id: int, **fields: Any) -> Route:
    route = _route_or_raise(route_id)

    try:
        with db.session.no_autoflush:
            for f in ROUTE_TEXT_FIELDS:
                if f in fields:
                    setattr(route, f, _require_text(fields[f], f))
            if "active" in fields:
                route.active = _as_bool(fields["active"], "active")
            dup = Route.query.filter(Route.number == route.number, Route.id != route.id).first()
    except ValidationFailure:
        db.session.rollback()
        raise
    if dup:
        db.session.rollback()
        raise Conflict("Route number already exists")

    _commit("Route number already exists")
    return route


def delete_route(route_id: int) -> None:
    route = _route_or_raise(route_id)
    # SQLite ignores ON DELETE SET NULL unless foreign keys are switched on
    n = (
        Bus.query.filter(Bus.route_id == route.id)
        .update({Bus.route_id: None}, synchronize_session="fetch")
    )
    db.session.delete(route)
    db.session.commit()
    current_app.logger.info("[fleet] route deleted id=%s detached_buses=%s", route_id, n)


# ---------- buses ----------

def get_bus(bus_id: int) -> Bus:
    bus = _bus_query().filter(Bus.id == bus_id).first()
    if bus is None:
        raise NotFound("Bus not found")
    return bus


def list_buses() -> List[Bus]:
    return _bus_query().order_by(Bus.id.asc()).all()


def _apply_bus_fields(bus: Bus, fields: Dict[str, Any]) -> None:
    if "number" in fields:
        bus.number = _require_text(fields["number"], "number")
    if "route_id" in fields:
        bus.route_id = _route_or_raise(fields["route_id"]).id
    if "driver_id" in fields:
        did = fields["driver_id"]
        bus.driver_id = _driver_or_raise(did).id if did is not None else None
    if "capacity" in fields:
        bus.capacity = _capacity(fields["capacity"])
    if "current_passengers" in fields:
        bus.current_passengers = _as_int(fields["current_passengers"], "currentPassengers")
    if "lat" in fields:
        bus.lat = _as_float(fields["lat"], "lat")
    if "lng" in fields:
        bus.lng = _as_float(fields["lng"], "lng")
    if "eta" in fields:
        bus.eta = _as_float(fields["eta"], "eta")
    if "active" in fields:
        bus.active = _as_bool(fields["active"], "active")


def create_bus(**fields: Any) -> Bus:
    for required in ("number", "route_id", "lat", "lng"):
        if fields.get(required) is None:
            raise ValidationFailure(f"{required} is required")

    fields = dict(fields)
    if fields.get("capacity") is None:
        fields["capacity"] = current_app.config.get("DEFAULT_BUS_CAPACITY", 40)
    fields.setdefault("current_passengers", 0)
    fields.setdefault("eta", 0)
    fields.setdefault("active", True)
    for opt in ("current_passengers", "eta"):
        if fields[opt] is None:
            fields[opt] = 0

    bus = Bus()
    _apply_bus_fields(bus, fields)
    if Bus.query.filter(Bus.number == bus.number).first():
        raise Conflict("Bus number already exists")

    db.session.add(bus)
    _commit("Bus number already exists")
    current_app.logger.info("[fleet] bus created id=%s number=%s route=%s", bus.id, bus.number, bus.route_id)
    return get_bus(bus.id)


def update_bus(bus_id: int, **fields: Any) -> Bus:
    bus = db.session.get(Bus, bus_id)
    if bus is None:
        raise NotFound("Bus not found")

    try:
        with db.session.no_autoflush:
            _apply_bus_fields(bus, fields)
            dup = Bus.query.filter(Bus.number == bus.number, Bus.id != bus.id).first()
    except (ValidationFailure, NotFound, InvalidAssignment):
        db.session.rollback()
        raise
    if dup:
        db.session.rollback()
        raise Conflict("Bus number already exists")

    bus.touch()
    _commit("Bus number already exists")
    return get_bus(bus.id)


def delete_bus(bus_id: int) -> None:
    bus = db.session.get(Bus, bus_id)
    if bus is None:
        raise NotFound("Bus not found")
    db.session.delete(bus)
    db.session.commit()
    current_app.logger.info("[fleet] bus deleted id=%s", bus_id)


# ---------- users / drivers ----------

def list_drivers() -> List[User]:
    return User.query.filter(User.role == "driver").order_by(User.name.asc()).all()


def list_users() -> List[User]:
    return User.query.order_by(User.id.asc()).all()


def create_user(name: Any, email: Any, password: Any, role: str = "user") -> User:
    name = _require_text(name, "name")
    email = _require_text(email, "email").lower()
    password = _require_text(password, "password")

    if User.query.filter(func.lower(User.email) == email).first():
        raise Conflict("Email already exists")

    user = User(name=name, email=email, role=role)
    user.set_password(password)
    db.session.add(user)
    _commit("Email already exists")
    current_app.logger.info("[fleet] user created id=%s role=%s", user.id, user.role)
    return user


def create_driver(name: Any, email: Any, password: Any) -> User:
    return create_user(name, email, password, role="driver")


def delete_driver(user_id: int) -> int:
    """
    Unassign the driver from every bus that references them, then delete
    the user row. Returns the number of buses that were unassigned.
    """
    user = db.session.get(User, user_id)
    if user is None or not user.is_driver:
        raise NotFound("Driver not found")

    n = (
        Bus.query.filter(Bus.driver_id == user.id)
        .update({Bus.driver_id: None}, synchronize_session="fetch")
    )
    db.session.delete(user)
    db.session.commit()
    current_app.logger.info("[fleet] driver deleted id=%s unassigned_buses=%s", user_id, n)
    return int(n or 0)


def fleet_stats() -> Dict[str, int]:
    total_passengers = (
        db.session.query(func.coalesce(func.sum(Bus.current_passengers), 0))
        .filter(Bus.active.is_(True))
        .scalar()
    )
    return {
        "totalBuses": Bus.query.filter(Bus.active.is_(True)).count(),
        "totalRoutes": Route.query.filter(Route.active.is_(True)).count(),
        "totalDrivers": User.query.filter(User.role == "driver").count(),
        "totalUsers": User.query.filter(User.role == "user").count(),
        "totalPassengers": int(total_passengers or 0),
    }
