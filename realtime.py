# realtime.py
import logging

from flask_socketio import SocketIO, emit, join_room, leave_room

_log = logging.getLogger("realtime")

# one shared instance for the whole app
socketio = SocketIO(cors_allowed_origins="*", ping_interval=25, ping_timeout=20)

NS = "/rt"


def _room(route_id) -> str:
    return f"route:{route_id}"


@socketio.on("connect", namespace=NS)
def on_connect(auth=None):
    emit("connected", {"ok": True})

@socketio.on("disconnect", namespace=NS)
def on_disconnect(*_):
    pass

@socketio.on("subscribe", namespace=NS)
def on_subscribe(data):
    route_id = (data or {}).get("route_id")
    if route_id:
        join_room(_room(route_id))
        emit("subscribed", {"route_id": route_id})

@socketio.on("unsubscribe", namespace=NS)
def on_unsubscribe(data):
    route_id = (data or {}).get("route_id")
    if route_id:
        leave_room(_room(route_id))


def emit_bus_update(bus) -> None:
    """
    Push a driver's telemetry to everyone watching the bus's route.
    Polling clients pick the same data up on their next cycle anyway,
    so a failed emit is logged and otherwise ignored.
    """
    if bus.route_id is None:
        return
    payload = {
        "id": bus.id,
        "number": bus.number,
        "route_id": bus.route_id,
        "eta": bus.eta,
        "passengers": bus.current_passengers,
        "capacity": bus.capacity,
        "lat": bus.lat,
        "lng": bus.lng,
        "last_updated": bus.last_updated.isoformat() if bus.last_updated else None,
    }
    try:
        socketio.emit("bus:update", payload, to=_room(bus.route_id), namespace=NS)
    except Exception:
        _log.exception("[rt] bus:update emit failed bus=%s", bus.id)


def emit_bus_status(bus) -> None:
    if bus.route_id is None:
        return
    payload = {"id": bus.id, "number": bus.number, "route_id": bus.route_id, "active": bool(bus.active)}
    try:
        socketio.emit("bus:status", payload, to=_room(bus.route_id), namespace=NS)
    except Exception:
        _log.exception("[rt] bus:status emit failed bus=%s", bus.id)
