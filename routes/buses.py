# routes/buses.py
from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, request, jsonify

from auth_guard import require_role
from realtime import emit_bus_status, emit_bus_update
from services import fleet
from services.errors import ValidationFailure

buses_bp = Blueprint("buses", __name__, url_prefix="/api/buses")


def _ref_id(value: Any) -> Any:
    """Accept either a bare id or an embedded object {"id": ...}."""
    if isinstance(value, dict):
        return value.get("id")
    return value


def _bus_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if "number" in data:
        out["number"] = data["number"]
    if "route" in data or "route_id" in data:
        out["route_id"] = _ref_id(data.get("route", data.get("route_id")))
    if "driver" in data or "driver_id" in data:
        out["driver_id"] = _ref_id(data.get("driver", data.get("driver_id")))
    if "capacity" in data:
        out["capacity"] = data["capacity"]
    if "currentPassengers" in data:
        out["current_passengers"] = data["currentPassengers"]
    if "eta" in data:
        out["eta"] = data["eta"]
    if "active" in data:
        out["active"] = data["active"]

    loc = data.get("location")
    if loc is not None:
        if not isinstance(loc, dict):
            raise ValidationFailure("location must be an object with lat and lng")
        out["lat"] = loc.get("lat")
        out["lng"] = loc.get("lng")
    for k in ("lat", "lng"):
        if k in data:
            out[k] = data[k]
    return out


@buses_bp.route("", methods=["GET"])
@buses_bp.route("/", methods=["GET"])
@require_role()
def list_buses():
    return jsonify([b.to_dict() for b in fleet.list_buses()]), 200


@buses_bp.route("/<int:bus_id>", methods=["GET"])
@require_role()
def get_bus(bus_id: int):
    return jsonify(fleet.get_bus(bus_id).to_dict()), 200


@buses_bp.route("/<int:bus_id>/location", methods=["PUT"])
@require_role("driver")
def update_location(bus_id: int):
    """
    PUT /api/buses/<id>/location
    Body: { lat, lng, currentPassengers?, eta? }
    Last write wins; passengers/eta are stored as reported.
    """
    data = request.get_json(silent=True) or {}
    bus = fleet.report_telemetry(
        bus_id,
        data.get("lat"),
        data.get("lng"),
        passengers=data.get("currentPassengers"),
        eta=data.get("eta"),
    )
    emit_bus_update(bus)
    return jsonify(bus.to_dict()), 200


@buses_bp.route("", methods=["POST"])
@buses_bp.route("/", methods=["POST"])
@require_role("admin")
def create_bus():
    data = request.get_json(silent=True) or {}
    bus = fleet.create_bus(**_bus_fields(data))
    return jsonify(bus.to_dict()), 201


@buses_bp.route("/<int:bus_id>", methods=["PUT"])
@require_role("admin")
def update_bus(bus_id: int):
    data = request.get_json(silent=True) or {}
    bus = fleet.update_bus(bus_id, **_bus_fields(data))
    return jsonify(bus.to_dict()), 200


@buses_bp.route("/<int:bus_id>", methods=["DELETE"])
@require_role("admin")
def delete_bus(bus_id: int):
    fleet.delete_bus(bus_id)
    return jsonify(message="Bus deleted successfully"), 200


@buses_bp.route("/<int:bus_id>/toggle-status", methods=["PATCH"])
@require_role("admin")
def toggle_status(bus_id: int):
    bus = fleet.toggle_bus_status(bus_id)
    emit_bus_status(bus)
    return jsonify(fleet.get_bus(bus.id).to_dict()), 200
