#!/usr/bin/env python3
# seed.py
"""
Demo data: one admin, four drivers, three routes and five buses.

Run with `flask --app wsgi seed-demo` (wipes routes, buses and users first)
or call seed_demo() inside an app context.
"""

import random

from db import db
from models.bus import Bus
from models.route import Route
from models.user import User

ADMIN = {"name": "Admin User", "email": "admin@bus.com", "password": "admin123"}

DRIVERS = [
    {"name": "Rajesh Kumar", "email": "rajesh@bus.com", "password": "driver123"},
    {"name": "Amit Singh",   "email": "amit@bus.com",   "password": "driver123"},
    {"name": "Priya Sharma", "email": "priya@bus.com",  "password": "driver123"},
    {"name": "Vijay Patel",  "email": "vijay@bus.com",  "password": "driver123"},
]

ROUTES = [
    dict(number="101", name="City Center - Airport", origin="City Center", destination="Airport",
         distance="15 km", duration="45 min", frequency="Every 15 min"),
    dict(number="102", name="Downtown - Railway Station", origin="Downtown", destination="Railway Station",
         distance="8 km", duration="30 min", frequency="Every 10 min"),
    dict(number="103", name="University - Mall", origin="University", destination="Shopping Mall",
         distance="12 km", duration="35 min", frequency="Every 20 min"),
]

# buses per route, in ROUTES order
BUSES_PER_ROUTE = (2, 1, 2)

# map centre the demo buses scatter around
CENTER_LAT, CENTER_LNG = 21.2514, 81.6296


def seed_demo(rng: random.Random | None = None) -> dict:
    """
    Replace routes, buses and users with the demo set.
    Returns counts of what was created.
    """
    rng = rng or random.Random()

    Bus.query.delete()
    Route.query.delete()
    User.query.delete()
    db.session.flush()

    admin = User(name=ADMIN["name"], email=ADMIN["email"], role="admin")
    admin.set_password(ADMIN["password"])
    db.session.add(admin)

    drivers = []
    for d in DRIVERS:
        u = User(name=d["name"], email=d["email"], role="driver")
        u.set_password(d["password"])
        db.session.add(u)
        drivers.append(u)

    routes = [Route(**r) for r in ROUTES]
    db.session.add_all(routes)
    db.session.flush()  # ids for the bus rows

    buses = []
    for route, count in zip(routes, BUSES_PER_ROUTE):
        for _ in range(count):
            n = len(buses)
            buses.append(Bus(
                number=f"BUS-{n + 1:03d}",
                route_id=route.id,
                driver_id=drivers[n].id if n < len(drivers) else None,
                capacity=40,
                current_passengers=rng.randint(5, 34),
                lat=CENTER_LAT + (rng.random() - 0.5) * 0.1,
                lng=CENTER_LNG + (rng.random() - 0.5) * 0.1,
                eta=rng.randint(5, 24),
            ))
    db.session.add_all(buses)
    db.session.commit()

    return {"users": 1 + len(drivers), "routes": len(routes), "buses": len(buses)}


if __name__ == "__main__":
    from app import create_app

    app = create_app()
    with app.app_context():
        db.create_all()
        counts = seed_demo()
        print(f"✅ Seeded {counts['routes']} routes, {counts['buses']} buses, {counts['users']} users.")
        print(f"Admin: {ADMIN['email']} / {ADMIN['password']}")
        for d in DRIVERS:
            print(f"  driver {d['email']} / {d['password']}")
