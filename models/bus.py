# models/bus.py
from __future__ import annotations
from datetime import datetime, timezone
from db import db

def _now_utc() -> datetime:
    return datetime.now(timezone.utc)

class Bus(db.Model):
    __tablename__ = "buses"

    id                 = db.Column(db.Integer, primary_key=True)
    number             = db.Column(db.String(64), nullable=False, unique=True, index=True)
    route_id           = db.Column(db.Integer, db.ForeignKey("routes.id", ondelete="SET NULL"), nullable=True, index=True)
    driver_id          = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    capacity           = db.Column(db.Integer, nullable=False, default=40)
    current_passengers = db.Column(db.Integer, nullable=False, default=0)
    lat                = db.Column(db.Float, nullable=False)
    lng                = db.Column(db.Float, nullable=False)
    eta                = db.Column(db.Float, nullable=False, default=0)
    active             = db.Column(db.Boolean, nullable=False, default=True, index=True)
    last_updated       = db.Column(db.DateTime, nullable=False, default=_now_utc)

    route  = db.relationship("Route", back_populates="buses")
    driver = db.relationship("User", back_populates="buses", foreign_keys=[driver_id])

    def touch(self) -> None:
        self.last_updated = _now_utc()

    def to_dict(self) -> dict:
        """Full bus record with its route and driver resolved (admin / driver screens)."""
        return {
            "id": self.id,
            "number": self.number,
            "route_id": self.route_id,
            "route": self.route.to_dict() if self.route is not None else None,
            "driver_id": self.driver_id,
            "driver": self.driver.to_dict() if self.driver is not None else None,
            "capacity": self.capacity,
            "current_passengers": self.current_passengers,
            "location": {"lat": self.lat, "lng": self.lng},
            "eta": self.eta,
            "active": bool(self.active),
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }
