# tests/test_route_board.py
import threading

import pytest

from client.api import TransportFailure
from client.route_board import BoardState, RouteBoard
from client.snapshot import BusSummary, RouteView


def _route(rid, number, name, origin, destination, buses=()):
    return {
        "id": rid, "number": number, "name": name, "from": origin, "to": destination,
        "distance": "10 km", "duration": "30 min", "frequency": "Every 10 min",
        "buses": list(buses), "favorite": False,
    }


def _bus(bid, eta, passengers=10, capacity=40):
    return {"id": bid, "number": f"BUS-{bid:03d}", "eta": eta, "passengers": passengers,
            "capacity": capacity, "lat": 21.25, "lng": 81.63}


AIRPORT = _route(1, "101", "City Center - Airport", "City Center", "Airport",
                 [_bus(1, 7.4), _bus(2, 3.6)])
RAILWAY = _route(2, "102", "Downtown - Railway Station", "Downtown", "Railway Station")


class ScriptedFetch:
    """Returns (or raises) the queued results in order; repeats the last one."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        r = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(r, Exception):
            raise r
        return r


# ---------- state machine ----------

def test_starts_loading_without_data():
    board = RouteBoard(ScriptedFetch([AIRPORT]), interval_s=60)
    assert board.state is BoardState.LOADING
    assert board.snapshot is None
    assert board.routes == ()


def test_refresh_reaches_ready():
    board = RouteBoard(ScriptedFetch([AIRPORT, RAILWAY]), interval_s=60)
    assert board.refresh() is True
    assert board.state is BoardState.READY
    assert [r.number for r in board.routes] == ["101", "102"]
    assert isinstance(board.snapshot, tuple)


def test_first_load_failure_then_retry():
    fetch = ScriptedFetch(TransportFailure("connection refused"), [AIRPORT])
    seen = []
    board = RouteBoard(fetch, interval_s=60, on_change=lambda b: seen.append(b.state))

    assert board.refresh() is False
    assert board.state is BoardState.ERROR
    assert board.error == "connection refused"
    assert board.snapshot is None

    assert board.retry() is True
    assert board.state is BoardState.READY
    assert [r.number for r in board.routes] == ["101"]
    assert board.error is None
    assert seen == [BoardState.ERROR, BoardState.LOADING, BoardState.READY]


def test_retry_is_noop_unless_error():
    fetch = ScriptedFetch([AIRPORT])
    board = RouteBoard(fetch, interval_s=60)
    board.refresh()
    assert board.retry() is False
    assert fetch.calls == 1


def test_failed_refresh_keeps_last_snapshot():
    board = RouteBoard(ScriptedFetch([AIRPORT], TransportFailure("timeout")), interval_s=60)
    board.refresh()
    good = board.snapshot

    board.refresh()

    assert board.state is BoardState.ERROR
    assert board.snapshot is good


def test_refresh_keeps_previous_snapshot_visible_while_loading():
    release = threading.Event()
    started = threading.Event()
    first = True

    def fetch():
        nonlocal first
        if first:
            first = False
            return [AIRPORT]
        started.set()
        release.wait(5)
        return [AIRPORT, RAILWAY]

    board = RouteBoard(fetch, interval_s=60)
    board.refresh()
    t = threading.Thread(target=board.refresh)
    t.start()
    assert started.wait(5)

    assert board.state is BoardState.LOADING
    assert [r.number for r in board.routes] == ["101"]

    release.set()
    t.join(5)
    assert [r.number for r in board.routes] == ["101", "102"]


def test_stale_response_is_discarded():
    slow_release = threading.Event()
    slow_started = threading.Event()
    calls = {"n": 0}

    def fetch():
        calls["n"] += 1
        if calls["n"] == 1:
            slow_started.set()
            slow_release.wait(5)
            return [RAILWAY]          # old data, arrives last
        return [AIRPORT]              # newer request, arrives first

    board = RouteBoard(fetch, interval_s=60)
    slow = threading.Thread(target=board.refresh)
    slow.start()
    assert slow_started.wait(5)

    assert board.refresh() is True
    slow_release.set()
    slow.join(5)

    assert [r.number for r in board.routes] == ["101"]
    assert board.state is BoardState.READY


# ---------- derived views ----------

def test_search_airport():
    board = RouteBoard(ScriptedFetch([AIRPORT, RAILWAY]), interval_s=60)
    board.refresh()
    assert [r.name for r in board.search("airport")] == ["City Center - Airport"]
    assert [r.number for r in board.search("AIRPORT")] == ["101"]
    assert [r.number for r in board.search("102")] == ["102"]
    assert [r.number for r in board.search("railway st")] == ["102"]
    assert len(board.search("")) == 2
    assert board.search("harbour") == ()


def test_search_does_not_refetch():
    fetch = ScriptedFetch([AIRPORT, RAILWAY])
    board = RouteBoard(fetch, interval_s=60)
    board.refresh()
    for q in ("a", "ai", "air"):
        board.search(q)
    assert fetch.calls == 1


def test_favorites_survive_refresh_by_id():
    renamed = dict(AIRPORT, name="City Center - Airport (T1)")
    board = RouteBoard(ScriptedFetch([AIRPORT, RAILWAY], [renamed, RAILWAY]), interval_s=60)
    board.refresh()
    before = board.snapshot

    assert board.toggle_favorite(1) is True
    assert [r.id for r in board.favorites()] == [1]
    # toggling swaps the snapshot, it never edits the old one
    assert board.snapshot is not before
    assert before[0].favorite is False

    board.refresh()
    assert [r.name for r in board.favorites()] == ["City Center - Airport (T1)"]

    assert board.toggle_favorite(1) is False
    assert board.favorites() == ()


def test_nearest_bus():
    board = RouteBoard(ScriptedFetch([AIRPORT, RAILWAY]), interval_s=60)
    board.refresh()
    nearest = board.nearest_bus(1)
    assert nearest.id == 2
    assert nearest.eta_minutes == 4
    assert board.nearest_bus(2) is None
    assert board.nearest_bus(42) is None


def test_bus_display_helpers():
    assert BusSummary.from_dict(_bus(1, 2.5)).eta_minutes == 3
    assert BusSummary.from_dict(_bus(1, 0, passengers=50, capacity=40)).occupancy == 1.0
    assert BusSummary.from_dict(_bus(1, 0, passengers=-2)).occupancy == 0.0
    assert BusSummary.from_dict(_bus(1, 0, passengers=10, capacity=40)).occupancy == pytest.approx(0.25)


def test_route_view_is_frozen():
    view = RouteView.from_dict(AIRPORT)
    with pytest.raises(Exception):
        view.name = "changed"
    assert view.origin == "City Center"
    assert len(view.buses) == 2


# ---------- lifecycle ----------

def test_mount_polls_until_unmount():
    ticks = threading.Semaphore(0)
    fetch = ScriptedFetch([AIRPORT])
    board = RouteBoard(fetch, interval_s=0.01, on_change=lambda b: ticks.release() if b.state is BoardState.READY else None)

    with board:
        assert board.mounted
        for _ in range(3):
            assert ticks.acquire(timeout=5)

    assert not board.mounted
    calls = fetch.calls
    assert calls >= 3
    # no more recurring work once unmounted
    threading.Event().wait(0.05)
    assert fetch.calls == calls


def test_timer_picks_up_after_error():
    ready = threading.Event()
    fetch = ScriptedFetch(TransportFailure("down"), [AIRPORT])
    board = RouteBoard(fetch, interval_s=0.01, on_change=lambda b: ready.set() if b.state is BoardState.READY else None)

    board.mount()
    try:
        assert ready.wait(5)
    finally:
        board.unmount()
    assert board.state is BoardState.READY
