# client/route_board.py
"""
Route board: the commuter dashboard's view model.

Holds the latest route-view snapshot and keeps it fresh by polling
GET /api/routes on a fixed interval from a background thread.

States:
    LOADING → READY → LOADING → READY → ...
    LOADING → ERROR  (fetch failed)   ERROR → LOADING (retry() or next tick)

The first LOADING has nothing to show. Later cycles keep the previous
snapshot visible while the fetch is in flight, and a failed refresh keeps
it visible next to the error message.

The snapshot is a tuple of frozen RouteView records. It is never edited in
place: refreshes and favorite toggles build a new tuple and swap the
reference under the lock. Favorites are remembered by route id and merged
into every new snapshot.

Each fetch takes a sequence number; a response (or failure) that is older
than the last one applied is dropped, so a slow stale reply can never
overwrite fresher data.
"""
from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Set, Tuple

from config import Config
from client.snapshot import BusSummary, RouteView, parse_snapshot

_log = logging.getLogger("client.route_board")

Fetch = Callable[[], Iterable[dict]]
Listener = Callable[["RouteBoard"], None]


class BoardState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class RouteBoard:
    def __init__(
        self,
        fetch: Optional[Fetch] = None,
        *,
        interval_s: Optional[float] = None,
        on_change: Optional[Listener] = None,
    ):
        if fetch is None:
            from client.api import TransitClient
            fetch = TransitClient().list_route_views
        self._fetch = fetch
        self.interval_s = float(interval_s if interval_s is not None else Config.ROUTE_POLL_INTERVAL_S)
        self._listeners: List[Listener] = [on_change] if on_change else []

        self._lock = threading.Lock()
        self._state = BoardState.LOADING
        self._snapshot: Optional[Tuple[RouteView, ...]] = None
        self._error: Optional[str] = None
        self._favorites: Set[Any] = set()
        self._seq = 0
        self._applied_seq = 0

        self._stop: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    # ---------- read side ----------

    @property
    def state(self) -> BoardState:
        return self._state

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def snapshot(self) -> Optional[Tuple[RouteView, ...]]:
        """Last good snapshot, or None before the first successful fetch."""
        return self._snapshot

    @property
    def routes(self) -> Tuple[RouteView, ...]:
        return self._snapshot or ()

    @property
    def has_data(self) -> bool:
        return self._snapshot is not None

    @property
    def mounted(self) -> bool:
        t = self._thread
        return t is not None and t.is_alive()

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    # ---------- derived views (never mutate the snapshot) ----------

    def search(self, query: str) -> Tuple[RouteView, ...]:
        snap = self.routes
        return tuple(r for r in snap if r.matches(query))

    def favorites(self) -> Tuple[RouteView, ...]:
        return tuple(r for r in self.routes if r.favorite)

    def nearest_bus(self, route_id: Any) -> Optional[BusSummary]:
        for r in self.routes:
            if r.id == route_id:
                return r.nearest_bus
        return None

    # ---------- user actions ----------

    def toggle_favorite(self, route_id: Any) -> bool:
        """Flip the favorite flag for a route; returns the new value."""
        with self._lock:
            if route_id in self._favorites:
                self._favorites.discard(route_id)
                fav = False
            else:
                self._favorites.add(route_id)
                fav = True
            if self._snapshot is not None:
                self._snapshot = tuple(
                    r.with_favorite(fav) if r.id == route_id else r for r in self._snapshot
                )
        self._notify()
        return fav

    def retry(self) -> bool:
        """Manual retry from the error screen. No-op unless in ERROR."""
        if self._state is not BoardState.ERROR:
            return False
        return self.refresh()

    def refresh(self) -> bool:
        """
        Fetch once and apply the result. Returns True when a new snapshot
        was applied, False on failure or when the reply was stale.
        """
        with self._lock:
            self._seq += 1
            seq = self._seq
            entered = self._state is not BoardState.LOADING
            self._state = BoardState.LOADING
        if entered:
            self._notify()

        try:
            views = parse_snapshot(self._fetch())
        except Exception as e:
            with self._lock:
                if seq <= self._applied_seq:
                    _log.debug("[board] dropped stale failure seq=%s", seq)
                    return False
                self._applied_seq = seq
                self._state = BoardState.ERROR
                self._error = getattr(e, "message", None) or str(e) or e.__class__.__name__
            _log.warning("[board] refresh failed seq=%s: %s", seq, self._error)
            self._notify()
            return False

        with self._lock:
            if seq <= self._applied_seq:
                _log.debug("[board] dropped stale snapshot seq=%s (applied=%s)", seq, self._applied_seq)
                return False
            self._applied_seq = seq
            favs = set(self._favorites)
            self._snapshot = tuple(v.with_favorite(v.id in favs) for v in views)
            self._state = BoardState.READY
            self._error = None
        self._notify()
        return True

    # ---------- lifecycle ----------

    def mount(self) -> "RouteBoard":
        """Start polling: fetch now, then every interval_s until unmount()."""
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return self
            self._stop = threading.Event()
            self._thread = threading.Thread(
                target=self._run, args=(self._stop,), name="route-board", daemon=True
            )
            thread = self._thread
        thread.start()
        _log.info("[board] mounted interval=%.1fs", self.interval_s)
        return self

    def unmount(self, timeout: Optional[float] = None) -> None:
        with self._lock:
            stop, thread = self._stop, self._thread
            self._stop = None
            self._thread = None
        if stop is not None:
            stop.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        _log.info("[board] unmounted")

    def __enter__(self) -> "RouteBoard":
        return self.mount()

    def __exit__(self, *exc) -> None:
        self.unmount()

    def _run(self, stop: threading.Event) -> None:
        while not stop.is_set():
            self.refresh()
            if stop.wait(self.interval_s):
                break

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                _log.exception("[board] listener failed")
