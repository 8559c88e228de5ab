# routes/admin.py
from __future__ import annotations

from flask import Blueprint, request, jsonify, g, current_app

from auth_guard import require_role
from services import fleet

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.route("/drivers", methods=["GET"])
@require_role("admin")
def list_drivers():
    return jsonify([u.to_dict() for u in fleet.list_drivers()]), 200


@admin_bp.route("/users", methods=["GET"])
@require_role("admin")
def list_users():
    return jsonify([u.to_dict() for u in fleet.list_users()]), 200


@admin_bp.route("/drivers", methods=["POST"])
@require_role("admin")
def create_driver():
    data = request.get_json(silent=True) or {}
    driver = fleet.create_driver(data.get("name"), data.get("email"), data.get("password"))
    return jsonify(driver.to_dict()), 201


@admin_bp.route("/drivers/<int:user_id>", methods=["DELETE"])
@require_role("admin")
def delete_driver(user_id: int):
    unassigned = fleet.delete_driver(user_id)
    return jsonify(message="Driver deleted successfully", unassigned_buses=unassigned), 200


@admin_bp.route("/buses/<int:bus_id>/assign", methods=["PUT"])
@require_role("admin")
def assign_bus(bus_id: int):
    """
    PUT /api/admin/buses/<id>/assign
    Body: { driverId: <id> | null }   (null or missing → unassign)
    """
    data = request.get_json(silent=True) or {}
    driver_id = data.get("driverId")
    if driver_id in ("", 0):
        driver_id = None
    bus = fleet.assign_driver(bus_id, driver_id)
    current_app.logger.info("[admin] assign bus=%s driver=%s by uid=%s", bus_id, bus.driver_id, g.user.id)
    return jsonify(bus.to_dict()), 200


@admin_bp.route("/stats", methods=["GET"])
@require_role("admin")
def stats():
    return jsonify(fleet.fleet_stats()), 200
