# tests/test_route_views.py
from types import SimpleNamespace

from db import db
from services import fleet
from services.route_views import active_route_views, group_buses_by_route


def _route(rid, number="101", name="City Center - Airport"):
    return SimpleNamespace(
        id=rid, number=number, name=name, origin="City Center", destination="Airport",
        distance="15 km", duration="45 min", frequency="Every 15 min",
    )


def _bus(bid, route_id, eta=5.0, passengers=10):
    return SimpleNamespace(
        id=bid, number=f"BUS-{bid:03d}", route_id=route_id, eta=eta,
        current_passengers=passengers, capacity=40, lat=21.25, lng=81.63,
    )


# ---------- pure grouping ----------

def test_one_view_per_route_in_input_order():
    routes = [_route(3, "103"), _route(1, "101"), _route(2, "102")]
    views = group_buses_by_route(routes, [])
    assert [v["id"] for v in views] == [3, 1, 2]
    assert all(v["buses"] == [] for v in views)
    assert all(v["favorite"] is False for v in views)


def test_buses_grouped_in_input_order_and_dangling_dropped():
    routes = [_route(1), _route(2, "102")]
    buses = [_bus(5, 2), _bus(1, 1), _bus(9, 99), _bus(3, 1), _bus(4, None)]

    views = group_buses_by_route(routes, buses)

    assert len(views) == len(routes)
    assert [b["id"] for b in views[0]["buses"]] == [1, 3]
    assert [b["id"] for b in views[1]["buses"]] == [5]
    all_ids = {b["id"] for v in views for b in v["buses"]}
    assert all_ids == {1, 3, 5}


def test_bus_summary_shape_passes_eta_through():
    views = group_buses_by_route([_route(1)], [_bus(7, 1, eta=4.6, passengers=25)])
    assert views[0]["buses"] == [
        {"id": 7, "number": "BUS-007", "eta": 4.6, "passengers": 25,
         "capacity": 40, "lat": 21.25, "lng": 81.63}
    ]


def test_route_fields_use_wire_names():
    v = group_buses_by_route([_route(1)], [])[0]
    assert v["from"] == "City Center"
    assert v["to"] == "Airport"
    assert set(v) == {"id", "number", "name", "from", "to", "distance",
                      "duration", "frequency", "buses", "favorite"}


def test_empty_inputs_give_empty_list():
    assert group_buses_by_route([], [_bus(1, 1)]) == []


# ---------- store-backed ----------

def test_only_active_routes_and_buses(make_route, make_bus):
    live = make_route("101")
    parked = make_route("102", active=False)
    make_bus(live, "BUS-001")
    make_bus(live, "BUS-002", active=False)
    make_bus(parked, "BUS-003")

    views = active_route_views()

    assert [v["number"] for v in views] == ["101"]
    assert [b["number"] for b in views[0]["buses"]] == ["BUS-001"]


def test_route_with_zero_buses_still_listed(make_route):
    make_route("101", name="City Center - Airport")
    views = active_route_views()
    assert len(views) == 1
    assert views[0]["number"] == "101"
    assert views[0]["buses"] == []


def test_repeated_reads_are_equal(make_route, make_bus):
    r = make_route()
    make_bus(r, passengers=12, eta=7)
    assert active_route_views() == active_route_views()


def test_toggle_twice_restores_presence(make_route, make_bus):
    r = make_route()
    bus = make_bus(r)
    before = active_route_views()

    fleet.toggle_bus_status(bus.id)
    assert active_route_views()[0]["buses"] == []

    fleet.toggle_bus_status(bus.id)
    assert db.session.get(type(bus), bus.id).active is True
    assert active_route_views() == before


def test_bus_of_deleted_route_is_excluded(make_route, make_bus):
    gone = make_route("101")
    kept = make_route("102")
    orphan = make_bus(gone, "BUS-001")
    make_bus(kept, "BUS-002")

    fleet.delete_route(gone.id)

    # bus row survives the route
    assert fleet.get_bus(orphan.id).number == "BUS-001"
    views = active_route_views()
    assert [v["number"] for v in views] == ["102"]
    assert [b["number"] for v in views for b in v["buses"]] == ["BUS-002"]
