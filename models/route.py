# models/route.py
from __future__ import annotations
from db import db
from sqlalchemy.sql import func

class Route(db.Model):
    __tablename__ = "routes"

    id         = db.Column(db.Integer, primary_key=True)
    number     = db.Column(db.String(32), nullable=False, unique=True, index=True)
    name       = db.Column(db.String(128), nullable=False)
    origin     = db.Column("from_label", db.String(128), nullable=False)
    destination = db.Column("to_label", db.String(128), nullable=False)
    distance   = db.Column(db.String(32), nullable=False)
    duration   = db.Column(db.String(32), nullable=False)
    frequency  = db.Column(db.String(64), nullable=False)
    active     = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime, server_default=func.now(), nullable=False)

    # no cascade: deleting a route leaves its buses behind
    buses = db.relationship("Bus", back_populates="route", passive_deletes=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "number": self.number,
            "name": self.name,
            "from": self.origin,
            "to": self.destination,
            "distance": self.distance,
            "duration": self.duration,
            "frequency": self.frequency,
            "active": bool(self.active),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
