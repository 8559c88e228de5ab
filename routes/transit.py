# routes/transit.py
from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, request, jsonify

from auth_guard import require_role
from services import fleet
from services.route_views import active_route_views

transit_bp = Blueprint("transit", __name__, url_prefix="/api/routes")

# wire name -> model attribute
_ROUTE_KEYS = {
    "number": "number",
    "name": "name",
    "from": "origin",
    "to": "destination",
    "distance": "distance",
    "duration": "duration",
    "frequency": "frequency",
    "active": "active",
}


def _route_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    return {attr: data[key] for key, attr in _ROUTE_KEYS.items() if key in data}


@transit_bp.route("", methods=["GET"])
@transit_bp.route("/", methods=["GET"])
def list_route_views():
    """
    GET /api/routes
    Active routes, each with the active buses running on it. Public: the
    landing page shows the live map before anyone signs in.
    """
    return jsonify(active_route_views()), 200


@transit_bp.route("/<int:route_id>", methods=["GET"])
def get_route(route_id: int):
    return jsonify(fleet.get_route(route_id).to_dict()), 200


@transit_bp.route("", methods=["POST"])
@transit_bp.route("/", methods=["POST"])
@require_role("admin")
def create_route():
    data = request.get_json(silent=True) or {}
    route = fleet.create_route(**_route_fields(data))
    return jsonify(route.to_dict()), 201


@transit_bp.route("/<int:route_id>", methods=["PUT"])
@require_role("admin")
def update_route(route_id: int):
    data = request.get_json(silent=True) or {}
    route = fleet.update_route(route_id, **_route_fields(data))
    return jsonify(route.to_dict()), 200


@transit_bp.route("/<int:route_id>", methods=["DELETE"])
@require_role("admin")
def delete_route(route_id: int):
    fleet.delete_route(route_id)
    return jsonify(message="Route deleted successfully"), 200
