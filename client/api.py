# client/api.py
"""
Thin HTTP client for the bus tracker API.

Every method returns the decoded JSON body. Failures raise:
  - TransportFailure  network error, timeout, or a non-JSON reply
  - ApiError          the server answered with an error status; `.message`
                      is the server's {"error": ...} string
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from config import Config
from client.snapshot import parse_timestamp

_log = logging.getLogger("client.api")


class TransitClientError(Exception):
    pass


class TransportFailure(TransitClientError):
    pass


class ApiError(TransitClientError):
    def __init__(self, status: int, message: str):
        super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message


def _with_timestamps(bus: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(bus)
    out["last_updated"] = parse_timestamp(bus.get("last_updated"))
    return out


class TransitClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        token: Optional[str] = None,
        timeout_s: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or Config.TRANSIT_API_URL).rstrip("/")
        self.token = token
        self.timeout_s = timeout_s if timeout_s is not None else Config.CLIENT_TIMEOUT_S
        self.session = session or requests.Session()

    # ---------- plumbing ----------

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            resp = self.session.request(method, url, json=payload, headers=headers, timeout=self.timeout_s)
        except requests.RequestException as e:
            _log.warning("[client] %s %s failed: %s", method, path, e)
            raise TransportFailure(str(e)) from e

        try:
            body = resp.json()
        except ValueError:
            body = None

        if resp.status_code >= 400:
            msg = body.get("error") if isinstance(body, dict) else None
            raise ApiError(resp.status_code, msg or resp.reason or "request failed")
        if body is None:
            raise TransportFailure(f"non-JSON response from {method} {path}")
        return body

    # ---------- auth ----------

    def login(self, email: str, password: str, role: Optional[str] = None) -> Dict[str, Any]:
        payload = {"email": email, "password": password}
        if role:
            payload["role"] = role
        data = self._request("POST", "/auth/login", payload)
        self.token = data.get("token")
        return data

    def register(self, name: str, email: str, password: str, role: str = "user") -> Dict[str, Any]:
        data = self._request("POST", "/auth/register", {"name": name, "email": email, "password": password, "role": role})
        self.token = data.get("token")
        return data

    # ---------- routes ----------

    def list_route_views(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/routes")

    def get_route(self, route_id) -> Dict[str, Any]:
        return self._request("GET", f"/routes/{route_id}")

    def create_route(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/routes", data)

    def update_route(self, route_id, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/routes/{route_id}", data)

    def delete_route(self, route_id) -> Dict[str, Any]:
        return self._request("DELETE", f"/routes/{route_id}")

    # ---------- buses ----------

    def list_buses(self) -> List[Dict[str, Any]]:
        return [_with_timestamps(b) for b in self._request("GET", "/buses")]

    def get_bus(self, bus_id) -> Dict[str, Any]:
        return _with_timestamps(self._request("GET", f"/buses/{bus_id}"))

    def create_bus(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/buses", data)

    def update_bus(self, bus_id, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/buses/{bus_id}", data)

    def delete_bus(self, bus_id) -> Dict[str, Any]:
        return self._request("DELETE", f"/buses/{bus_id}")

    def toggle_bus_status(self, bus_id) -> Dict[str, Any]:
        return self._request("PATCH", f"/buses/{bus_id}/toggle-status")

    def report_location(self, bus_id, lat: float, lng: float, passengers: Optional[int] = None, eta: Optional[float] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"lat": lat, "lng": lng}
        if passengers is not None:
            payload["currentPassengers"] = passengers
        if eta is not None:
            payload["eta"] = eta
        return self._request("PUT", f"/buses/{bus_id}/location", payload)

    # ---------- admin ----------

    def list_drivers(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/admin/drivers")

    def list_users(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/admin/users")

    def create_driver(self, name: str, email: str, password: str) -> Dict[str, Any]:
        return self._request("POST", "/admin/drivers", {"name": name, "email": email, "password": password})

    def delete_driver(self, user_id) -> Dict[str, Any]:
        return self._request("DELETE", f"/admin/drivers/{user_id}")

    def assign_driver(self, bus_id, driver_id) -> Dict[str, Any]:
        return self._request("PUT", f"/admin/buses/{bus_id}/assign", {"driverId": driver_id})

    def stats(self) -> Dict[str, Any]:
        return self._request("GET", "/admin/stats")
