# client/snapshot.py
"""
Immutable route-view records held by the route board.

`RouteView.from_dict` takes one element of the GET /api/routes payload.
Instances are frozen; the board only ever swaps whole tuples of them.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Tuple

from dateutil import parser as dtparse


@dataclass(frozen=True)
class BusSummary:
    id: Any
    number: str
    eta: float
    passengers: int
    capacity: int
    lat: float
    lng: float

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BusSummary":
        return cls(
            id=d.get("id"),
            number=str(d.get("number") or ""),
            eta=float(d.get("eta") or 0),
            passengers=int(d.get("passengers") or 0),
            capacity=int(d.get("capacity") or 0),
            lat=float(d.get("lat") or 0),
            lng=float(d.get("lng") or 0),
        )

    @property
    def eta_minutes(self) -> int:
        """ETA rounded half-up for display (2.5 → 3)."""
        return int(math.floor(self.eta + 0.5))

    @property
    def occupancy(self) -> float:
        """Load as a fraction of capacity, clamped to [0, 1]."""
        if self.capacity <= 0:
            return 0.0
        pax = min(max(self.passengers, 0), self.capacity)
        return pax / self.capacity


@dataclass(frozen=True)
class RouteView:
    id: Any
    number: str
    name: str
    origin: str
    destination: str
    distance: str = ""
    duration: str = ""
    frequency: str = ""
    buses: Tuple[BusSummary, ...] = field(default_factory=tuple)
    favorite: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RouteView":
        return cls(
            id=d.get("id"),
            number=str(d.get("number") or ""),
            name=str(d.get("name") or ""),
            origin=str(d.get("from") or ""),
            destination=str(d.get("to") or ""),
            distance=str(d.get("distance") or ""),
            duration=str(d.get("duration") or ""),
            frequency=str(d.get("frequency") or ""),
            buses=tuple(BusSummary.from_dict(b) for b in (d.get("buses") or ())),
            favorite=bool(d.get("favorite", False)),
        )

    def with_favorite(self, favorite: bool) -> "RouteView":
        return self if self.favorite == favorite else replace(self, favorite=favorite)

    def matches(self, query: str) -> bool:
        q = (query or "").strip().lower()
        if not q:
            return True
        return any(
            q in (s or "").lower()
            for s in (self.name, self.number, self.origin, self.destination)
        )

    @property
    def nearest_bus(self) -> Optional[BusSummary]:
        """Bus with the smallest eta; first one wins a tie. None without buses."""
        if not self.buses:
            return None
        return min(self.buses, key=lambda b: b.eta)


def parse_snapshot(payload: Iterable[Dict[str, Any]]) -> Tuple[RouteView, ...]:
    return tuple(RouteView.from_dict(d) for d in payload)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """ISO timestamps from bus records (last_updated, created_at)."""
    if not value:
        return None
    try:
        return dtparse.isoparse(value)
    except (ValueError, OverflowError):
        return None
