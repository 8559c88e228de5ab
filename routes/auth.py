# routes/auth.py
from __future__ import annotations

from flask import Blueprint, request, jsonify, g, current_app
from sqlalchemy import func

from models.user import User
from auth_guard import issue_token, require_role
from services import fleet

__all__ = ["auth_bp", "require_role"]
auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

# admins are created by `flask seed-demo` / an existing admin, never self-registered
SELF_SERVICE_ROLES = {"user", "driver"}


@auth_bp.after_request
def add_no_store(resp):
    resp.headers["Cache-Control"] = "no-store"
    return resp


@auth_bp.route("/register", methods=["POST"])
def register():
    data = request.get_json(silent=True) or {}
    role = (data.get("role") or "user").strip().lower()
    if role not in SELF_SERVICE_ROLES:
        return jsonify(error="invalid role"), 400

    user = fleet.create_user(data.get("name"), data.get("email"), data.get("password"), role=role)
    current_app.logger.info("[auth] registered uid=%s role=%s", user.id, user.role)
    return jsonify(token=issue_token(user), user=user.to_dict()), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    """
    Body: { email, password, role? }
    When `role` is given the account must have that role
    (the driver screen refuses commuter accounts and vice versa).
    """
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    expected = (data.get("role") or "").strip().lower()

    if not email or not password:
        return jsonify(error="email and password are required"), 400

    user = User.query.filter(func.lower(User.email) == email).first()
    if not user or not user.check_password(password):
        current_app.logger.info("[auth] login failed email=%s", email)
        return jsonify(error="Invalid credentials"), 401

    if expected and (user.role or "").lower() != expected:
        return jsonify(error=f"This account is for {user.role}s, not {expected}s"), 403

    return jsonify(token=issue_token(user), user=user.to_dict()), 200


@auth_bp.route("/me", methods=["GET"])
@require_role()
def me():
    return jsonify(g.user.to_dict()), 200
