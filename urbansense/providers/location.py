"""Geolocation adapters."""

from __future__ import annotations

import asyncio
import logging

import requests

from ..constants import (
    MSG_LOCATION_PERMISSION,
    MSG_LOCATION_TIMEOUT,
    MSG_LOCATION_UNAVAILABLE,
    MSG_LOCATION_UNSUPPORTED,
)
from ..errors import LocationError
from ..types import Coordinates

LOGGER = logging.getLogger(__name__)


class IpLocationProvider:
    """Approximate position from an IP geolocation service (ip-api.com format).

    Every call performs a fresh lookup; there is no cached fix and no retry.
    """

    def __init__(
        self,
        url: str,
        timeout_s: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.url = url
        self.timeout_s = timeout_s
        self._session = session or requests.Session()

    def _fetch(self) -> requests.Response:
        return self._session.get(
            self.url,
            timeout=self.timeout_s,
            headers={"Cache-Control": "no-cache"},
        )

    async def request_location(self) -> Coordinates:
        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(self._fetch), timeout=self.timeout_s
            )
        except (asyncio.TimeoutError, requests.exceptions.Timeout) as exc:
            raise LocationError("timeout", MSG_LOCATION_TIMEOUT) from exc
        except requests.exceptions.RequestException as exc:
            LOGGER.error("Location lookup failed: %s", exc)
            raise LocationError("position-unavailable", MSG_LOCATION_UNAVAILABLE) from exc

        if response.status_code in (401, 403):
            raise LocationError("permission-denied", MSG_LOCATION_PERMISSION)
        if not response.ok:
            LOGGER.error("Location service responded with %s", response.status_code)
            raise LocationError("position-unavailable", MSG_LOCATION_UNAVAILABLE)

        try:
            data = response.json()
        except ValueError as exc:
            raise LocationError("position-unavailable", MSG_LOCATION_UNAVAILABLE) from exc
        if not isinstance(data, dict) or data.get("status", "success") != "success":
            message = data.get("message") if isinstance(data, dict) else None
            LOGGER.error("Location service failed: %s", message)
            raise LocationError("position-unavailable", MSG_LOCATION_UNAVAILABLE)

        try:
            latitude = float(data["lat"])
            longitude = float(data["lon"])
        except (KeyError, TypeError, ValueError) as exc:
            raise LocationError("position-unavailable", MSG_LOCATION_UNAVAILABLE) from exc
        LOGGER.info("Location found: %s, %s", data.get("city"), data.get("country"))
        return Coordinates(latitude=latitude, longitude=longitude)


class StaticLocationProvider:
    def __init__(self, latitude: float, longitude: float) -> None:
        self._coordinates = Coordinates(latitude=latitude, longitude=longitude)

    async def request_location(self) -> Coordinates:
        return self._coordinates


class UnsupportedLocationProvider:
    async def request_location(self) -> Coordinates:
        raise LocationError("unsupported", MSG_LOCATION_UNSUPPORTED)


def bind_location(
    *,
    enabled: bool,
    url: str,
    timeout_s: float = 10.0,
    fixed: tuple[float, float] | None = None,
):
    """Choose the location adapter once at startup."""

    if fixed is not None:
        return StaticLocationProvider(*fixed)
    if not enabled or not url:
        return UnsupportedLocationProvider()
    return IpLocationProvider(url, timeout_s=timeout_s)


__all__ = [
    "IpLocationProvider",
    "StaticLocationProvider",
    "UnsupportedLocationProvider",
    "bind_location",
]
