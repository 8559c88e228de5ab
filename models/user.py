# models/user.py
from __future__ import annotations
from db import db
from sqlalchemy.sql import func
from werkzeug.security import generate_password_hash, check_password_hash

ROLES = ("user", "driver", "admin")

class User(db.Model):
    __tablename__ = "users"

    id            = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name          = db.Column(db.String(120), nullable=False)
    email         = db.Column(db.String(254), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role          = db.Column(db.String(16), nullable=False, default="user", index=True)

    created_at    = db.Column(db.DateTime, server_default=func.now(), nullable=False)

    # ── Relationships ────────────────────────────────────────────────────────
    buses = db.relationship("Bus", back_populates="driver", foreign_keys="Bus.driver_id")

    # ── Helpers ─────────────────────────────────────────────────────────────
    def set_password(self, raw: str) -> None:
        self.password_hash = generate_password_hash(raw)

    def check_password(self, raw: str) -> bool:
        try:
            return check_password_hash(self.password_hash or "", raw or "")
        except Exception:
            return False

    @property
    def is_driver(self) -> bool:
        return (self.role or "").lower() == "driver"

    def to_dict(self) -> dict:
        # never expose password_hash
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
