# services/route_views.py
"""
Route view aggregation.

A "route view" is an active route together with the active buses that
run on it, in the shape every commuter screen consumes:

    {
      "id", "number", "name", "from", "to",
      "distance", "duration", "frequency",
      "buses": [ {"id", "number", "eta", "passengers", "capacity", "lat", "lng"} ],
      "favorite": false
    }

Public API:
  - group_buses_by_route(routes, buses) -> list[dict]   (pure)
  - active_route_views() -> list[dict]                  (reads the store)
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from sqlalchemy.orm import joinedload

from models.bus import Bus
from models.route import Route


def bus_summary(bus) -> Dict[str, Any]:
    # eta is passed through as stored; rounding is up to the display
    return {
        "id": bus.id,
        "number": bus.number,
        "eta": bus.eta,
        "passengers": bus.current_passengers,
        "capacity": bus.capacity,
        "lat": bus.lat,
        "lng": bus.lng,
    }


def group_buses_by_route(routes: Iterable, buses: Iterable) -> List[Dict[str, Any]]:
    """
    One view per route, in the order given. Each view carries the buses whose
    route_id matches, in the order given. Buses pointing at a route that is not
    in `routes` (deleted, inactive, or never existed) are dropped.
    """
    routes = list(routes)
    by_route: Dict[Any, List[Dict[str, Any]]] = {r.id: [] for r in routes}

    for b in buses:
        bucket = by_route.get(b.route_id)
        if bucket is not None:
            bucket.append(bus_summary(b))

    return [
        {
            "id": r.id,
            "number": r.number,
            "name": r.name,
            "from": r.origin,
            "to": r.destination,
            "distance": r.distance,
            "duration": r.duration,
            "frequency": r.frequency,
            "buses": by_route[r.id],
            "favorite": False,
        }
        for r in routes
    ]


def active_route_views() -> List[Dict[str, Any]]:
    routes = Route.query.filter(Route.active.is_(True)).order_by(Route.id.asc()).all()
    buses = (
        Bus.query.options(joinedload(Bus.route), joinedload(Bus.driver))
        .filter(Bus.active.is_(True))
        .order_by(Bus.id.asc())
        .all()
    )
    return group_buses_by_route(routes, buses)
