"""Async client for the Netatmo cloud API.

This module provides NetatmoClient, one async method per REST endpoint of
the weather station, Energy (thermostat), Home+ Security (camera) and
Healthy Home Coach products.

Every endpoint method follows the same steps:
    1. Check required parameters (ParameterError when one is missing).
    2. Wait for an access token. Calls made before the grant exchange
       finishes are held back and sent once, as soon as the token
       manager is ready.
    3. Send the parameters with the access token as a form body (POST)
       or query string (GET).
    4. Unwrap the JSON response, or raise RequestError.

Example:
    Read the weather station::

        import asyncio
        from netatmo import NetatmoClient, PasswordGrant

        async def main():
            credentials = PasswordGrant(
                client_id="abc",
                client_secret="s3cr3t",
                username="me@example.com",
                password="hunter2",
            )
            async with NetatmoClient(credentials) as client:
                for device in await client.get_stations_data():
                    print(device["station_name"], device["dashboard_data"])

        asyncio.run(main())
"""

import asyncio
import json
import logging
from datetime import date, datetime, time
from datetime import timezone as dt_timezone
from enum import Enum
from typing import Any, Callable, Optional, Union

from .auth import ErrorCallback, ReadyCallback, TokenManager
from .config import Settings, load_settings
from .dispatcher import HttpxDispatcher, RequestDispatcher
from .exceptions import NetatmoConnectionError, ParameterError, RequestError
from .models import Credentials, RawResponse
from .scheduler import Scheduler
from .types import (
    BASE_URL,
    DEFAULT_AWAY_TEMP,
    DEFAULT_HG_TEMP,
    DEFAULT_TIMEOUT,
    MAX_MEASURE_LIMIT,
    MILLISECONDS_THRESHOLD,
    TOKEN_PATH,
    HttpMethod,
    MeasureScale,
)

logger = logging.getLogger(__name__)

Timestamp = Union[datetime, date, int, float]


def _require(method: str, **params: Any) -> None:
    """Raise ParameterError for the first missing parameter, in argument order."""
    for name, value in params.items():
        if value is None or value == "":
            raise ParameterError(method, name)


def _serialize(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value)
    return value


def _to_epoch(value: Timestamp) -> int:
    """Convert a timestamp to UTC epoch seconds.

    Numbers above MILLISECONDS_THRESHOLD are taken as milliseconds. Naive
    datetimes are interpreted in local time, dates as midnight UTC.
    """
    if isinstance(value, datetime):
        return int(value.timestamp())
    if isinstance(value, date):
        return int(datetime.combine(value, time(), tzinfo=dt_timezone.utc).timestamp())
    if value > MILLISECONDS_THRESHOLD:
        value = value / 1000
    return int(value)


def _measure_types(value: Union[str, list[str]]) -> str:
    if isinstance(value, (list, tuple)):
        value = ",".join(value)
    return "".join(value.split()).lower()


class NetatmoClient:
    """Async client for the Netatmo REST API.

    Args:
        credentials: PasswordGrant or BearerToken used by connect().
        base_url: API root. Defaults to https://api.netatmo.com.
        timeout: HTTP timeout in seconds for the default dispatcher.
        dispatcher: Custom request dispatcher. When omitted an
            HttpxDispatcher is created and closed with the client.
        scheduler: Timer used for token refresh. Defaults to the event loop.
        clock: Current-time function used to compute token expiry.

    Example:
        Using as async context manager (recommended)::

            async with NetatmoClient(credentials) as client:
                status = await client.get_home_status(home_id=home_id)

        Manual resource management::

            client = NetatmoClient(credentials)
            client.connect()
            try:
                devices = await client.get_healthy_home_coach_data()
            finally:
                await client.close()

        From environment variables (see netatmo.config)::

            async with NetatmoClient.from_settings() as client:
                homes = await client.get_homes_data()
    """

    def __init__(
        self,
        credentials: Optional[Credentials] = None,
        *,
        base_url: str = BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        dispatcher: Optional[RequestDispatcher] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._credentials = credentials
        self._base_url = base_url.rstrip("/")
        self._owns_dispatcher = dispatcher is None
        self._dispatcher = dispatcher or HttpxDispatcher(timeout=timeout)
        self._auth = TokenManager(
            dispatcher=self._dispatcher,
            scheduler=scheduler,
            clock=clock,
            token_url=f"{self._base_url}{TOKEN_PATH}",
        )

    @classmethod
    def from_settings(
        cls, settings: Optional[Settings] = None, **kwargs: Any
    ) -> "NetatmoClient":
        """Build a client from Settings, loading them from the environment if omitted."""
        if settings is None:
            settings = load_settings()
        return cls(
            settings.credentials(),
            base_url=settings.base_url,
            timeout=settings.timeout,
            **kwargs,
        )

    async def __aenter__(self) -> "NetatmoClient":
        self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    @property
    def auth(self) -> TokenManager:
        return self._auth

    def connect(self) -> Optional[asyncio.Task]:
        """Start authentication without waiting for it.

        Returns:
            The background grant task, or None for a BearerToken.

        Raises:
            ConfigurationError: If the credentials are incomplete.
        """
        return self._auth.initialize(self._credentials)

    async def close(self) -> None:
        """Stop token refresh and close the dispatcher if this client created it."""
        self._auth.close()
        if self._owns_dispatcher:
            await self._dispatcher.close()

    def on_error(self, callback: ErrorCallback) -> None:
        self._auth.on_error(callback)

    def on_ready(self, callback: ReadyCallback) -> None:
        self._auth.on_ready(callback)

    async def _call(
        self,
        endpoint: str,
        path: str,
        params: dict[str, Any],
        *,
        method: HttpMethod = HttpMethod.POST,
    ) -> RawResponse:
        """Send one authenticated request and check its status.

        Args:
            endpoint: Method name used in error messages.
            path: API path, e.g. ``/api/homestatus``.
            params: Endpoint parameters. None values are left out.
            method: POST sends a form body, GET a query string.

        Raises:
            RequestError: If no response was received or the status is not 200.
        """
        token = await self._auth.wait_for_token()

        payload: dict[str, Any] = {"access_token": token}
        for key, value in params.items():
            if value is not None:
                payload[key] = _serialize(value)

        url = f"{self._base_url}{path}"
        try:
            if method == HttpMethod.GET:
                response = await self._dispatcher.dispatch(method, url, query=payload)
            else:
                response = await self._dispatcher.dispatch(method, url, body=payload)
        except NetatmoConnectionError as e:
            raise self._request_error(endpoint, "No response") from e

        if response.status_code != 200:
            raise self._request_error(
                endpoint, response.error_message(), response.status_code
            )
        return response

    async def _call_json(
        self,
        endpoint: str,
        path: str,
        params: dict[str, Any],
        *,
        method: HttpMethod = HttpMethod.POST,
    ) -> dict[str, Any]:
        response = await self._call(endpoint, path, params, method=method)
        if not response.is_json:
            raise self._request_error(
                endpoint, "Unexpected content type", response.status_code
            )
        try:
            return response.json_body()
        except ValueError as e:
            raise self._request_error(
                endpoint, "Invalid JSON response", response.status_code
            ) from e

    def _unwrap(self, endpoint: str, data: dict[str, Any], *keys: str) -> Any:
        value: Any = data
        for key in keys:
            if not isinstance(value, dict) or key not in value:
                raise self._request_error(endpoint, f"Missing '{key}' in response", 200)
            value = value[key]
        return value

    def _request_error(
        self, endpoint: str, detail: str, status_code: Optional[int] = None
    ) -> RequestError:
        logger.warning(f"{endpoint} failed: {detail}")
        return RequestError(f"{endpoint} error: {detail}", status_code)

    # Weather station

    async def get_stations_data(
        self,
        device_id: Optional[str] = None,
        get_favorites: Optional[bool] = None,
    ) -> list[dict[str, Any]]:
        """Read the weather stations of the user.

        Args:
            device_id: MAC address of a single station to read.
            get_favorites: Also return favorite stations.

        Returns:
            List of station devices with their modules and dashboard data.
        """
        data = await self._call_json(
            "get_stations_data",
            "/api/getstationsdata",
            {"device_id": device_id, "get_favorites": get_favorites},
        )
        return self._unwrap("get_stations_data", data, "body", "devices")

    # Thermostat (legacy API)

    async def get_thermostats_data(
        self, device_id: Optional[str] = None
    ) -> list[dict[str, Any]]:
        """Read the thermostat relays and valves of the user."""
        data = await self._call_json(
            "get_thermostats_data",
            "/api/getthermostatsdata",
            {"device_id": device_id},
            method=HttpMethod.GET,
        )
        return self._unwrap("get_thermostats_data", data, "body", "devices")

    async def set_sync_schedule(
        self,
        device_id: str,
        module_id: str,
        zones: Union[list[dict[str, Any]], str],
        timetable: Union[list[dict[str, Any]], str],
    ) -> str:
        """Replace the weekly schedule of a thermostat.

        ``zones`` and ``timetable`` are sent JSON encoded when given as lists.

        Returns:
            The API status string, ``"ok"`` on success.
        """
        _require(
            "set_sync_schedule",
            device_id=device_id,
            module_id=module_id,
            zones=zones,
            timetable=timetable,
        )
        data = await self._call_json(
            "set_sync_schedule",
            "/api/syncschedule",
            {
                "device_id": device_id,
                "module_id": module_id,
                "zones": zones,
                "timetable": timetable,
            },
        )
        return self._unwrap("set_sync_schedule", data, "status")

    async def set_thermpoint(
        self,
        device_id: str,
        module_id: str,
        setpoint_mode: str,
        setpoint_endtime: Optional[Timestamp] = None,
        setpoint_temp: Optional[float] = None,
    ) -> str:
        """Set the thermostat mode (program, away, hg, manual, off, max).

        Args:
            device_id: Relay MAC address.
            module_id: Thermostat module MAC address.
            setpoint_mode: Target mode.
            setpoint_endtime: End of a manual or max setpoint.
            setpoint_temp: Temperature for ``manual`` mode, in °C.
        """
        _require(
            "set_thermpoint",
            device_id=device_id,
            module_id=module_id,
            setpoint_mode=setpoint_mode,
        )
        data = await self._call_json(
            "set_thermpoint",
            "/api/setthermpoint",
            {
                "device_id": device_id,
                "module_id": module_id,
                "setpoint_mode": setpoint_mode,
                "setpoint_endtime": (
                    _to_epoch(setpoint_endtime) if setpoint_endtime is not None else None
                ),
                "setpoint_temp": setpoint_temp,
            },
        )
        return self._unwrap("set_thermpoint", data, "status")

    # Homes

    async def get_home_data(
        self, home_id: Optional[str] = None, size: Optional[int] = None
    ) -> dict[str, Any]:
        """Read security homes, cameras, persons and the last ``size`` events."""
        data = await self._call_json(
            "get_home_data",
            "/api/gethomedata",
            {"home_id": home_id, "size": size},
        )
        return self._unwrap("get_home_data", data, "body")

    async def get_homes_data(
        self,
        home_id: Optional[str] = None,
        gateway_types: Optional[Union[list[str], str]] = None,
    ) -> dict[str, Any]:
        """Read the topology of the user's homes (rooms, modules, schedules)."""
        data = await self._call_json(
            "get_homes_data",
            "/api/homesdata",
            {"home_id": home_id, "gateway_types": gateway_types},
        )
        return self._unwrap("get_homes_data", data, "body")

    async def get_home_status(
        self, home_id: Optional[str] = None, device_type: Optional[str] = None
    ) -> dict[str, Any]:
        data = await self._call_json(
            "get_home_status",
            "/api/homestatus",
            {"home_id": home_id, "device_type": device_type},
        )
        return self._unwrap("get_home_status", data, "body")

    # Energy

    async def set_room_thermpoint(
        self,
        home_id: str,
        room_id: str,
        mode: str,
        endtime: Optional[Timestamp] = None,
        temp: Optional[float] = None,
    ) -> str:
        """Set the temperature mode of a single room (manual, max, home)."""
        _require("set_room_thermpoint", home_id=home_id, room_id=room_id, mode=mode)
        data = await self._call_json(
            "set_room_thermpoint",
            "/api/setroomthermpoint",
            {
                "home_id": home_id,
                "room_id": room_id,
                "mode": mode,
                "endtime": _to_epoch(endtime) if endtime is not None else None,
                "temp": temp,
            },
        )
        return self._unwrap("set_room_thermpoint", data, "status")

    async def set_therm_mode(
        self,
        home_id: str,
        mode: str,
        endtime: Optional[Timestamp] = None,
        schedule_id: Optional[str] = None,
    ) -> str:
        """Set the heating mode of a whole home (schedule, away, hg)."""
        _require("set_therm_mode", home_id=home_id, mode=mode)
        data = await self._call_json(
            "set_therm_mode",
            "/api/setthermmode",
            {
                "home_id": home_id,
                "mode": mode,
                "endtime": _to_epoch(endtime) if endtime is not None else None,
                "schedule_id": schedule_id,
            },
        )
        return self._unwrap("set_therm_mode", data, "status")

    async def get_room_measure(
        self,
        home_id: str,
        room_id: str,
        scale: Union[MeasureScale, str],
        type: Union[str, list[str]],
        date_begin: Optional[Timestamp] = None,
        date_end: Optional[Union[Timestamp, str]] = None,
        limit: Optional[int] = None,
        optimize: Optional[bool] = None,
        real_time: Optional[bool] = None,
    ) -> Union[list[dict[str, Any]], dict[str, Any]]:
        """Read historical measures of a room.

        Args:
            home_id: Home id.
            room_id: Room id.
            scale: Aggregation step, e.g. MeasureScale.ONE_HOUR.
            type: Measure types, e.g. ``["temperature", "sp_temperature"]``
                or ``"temperature, sp_temperature"``. Whitespace is removed
                and names are lower-cased.
            date_begin: Start of the range. Epoch values above 1e10 are
                taken as milliseconds.
            date_end: End of the range, or ``"last"`` for the latest measure.
            limit: Maximum number of measures, capped at 1024.
                A zero ``date_begin``, ``date_end`` or ``limit`` is not sent.
            optimize: Return the compact ``beg_time``/``step_time`` format.
            real_time: Do not align timestamps to the scale.

        Returns:
            With ``optimize`` a list of ``{"beg_time", "step_time", "value"}``
            blocks, otherwise a mapping of epoch timestamp to values.
            See netatmo.dataframe.measure_to_dataframe().

        Raises:
            ParameterError: If home_id, room_id, scale or type is missing.
            RequestError: If the API call fails.
        """
        _require(
            "get_room_measure",
            home_id=home_id,
            room_id=room_id,
            scale=scale,
            type=type,
        )

        params: dict[str, Any] = {
            "home_id": home_id,
            "room_id": room_id,
            "scale": scale,
            "type": _measure_types(type),
        }
        if date_begin:
            params["date_begin"] = _to_epoch(date_begin)
        if date_end == "last":
            params["date_end"] = "last"
        elif date_end:
            params["date_end"] = _to_epoch(date_end)
        if limit:
            params["limit"] = min(int(limit), MAX_MEASURE_LIMIT)
        params["optimize"] = optimize
        params["real_time"] = real_time

        data = await self._call_json(
            "get_room_measure", "/api/getroommeasure", params
        )
        return self._unwrap("get_room_measure", data, "body")

    async def set_sync_schedule_home(
        self,
        home_id: str,
        zones: Union[list[dict[str, Any]], str],
        timetable: Union[list[dict[str, Any]], str],
        schedule_id: str,
        name: str,
        hg_temp: Optional[float] = None,
        away_temp: Optional[float] = None,
    ) -> str:
        """Replace a weekly schedule of an Energy home.

        Frost-guard and away temperatures default to 10 °C and 15 °C.
        """
        _require(
            "set_sync_schedule_home",
            home_id=home_id,
            zones=zones,
            timetable=timetable,
            schedule_id=schedule_id,
            name=name,
        )
        data = await self._call_json(
            "set_sync_schedule_home",
            "/api/synchomeschedule",
            {
                "home_id": home_id,
                "zones": zones,
                "timetable": timetable,
                "schedule_id": schedule_id,
                "hg_temp": hg_temp or DEFAULT_HG_TEMP,
                "away_temp": away_temp or DEFAULT_AWAY_TEMP,
                "name": name,
            },
        )
        return self._unwrap("set_sync_schedule_home", data, "status")

    # Security

    async def get_next_events(
        self, home_id: str, event_id: str, size: Optional[int] = None
    ) -> dict[str, Any]:
        """Read events that happened before ``event_id``."""
        _require("get_next_events", home_id=home_id, event_id=event_id)
        data = await self._call_json(
            "get_next_events",
            "/api/getnextevents",
            {"home_id": home_id, "event_id": event_id, "size": size},
        )
        return self._unwrap("get_next_events", data, "body")

    async def get_last_event_of(
        self, home_id: str, person_id: str, offset: Optional[int] = None
    ) -> dict[str, Any]:
        """Read the events until the last one of ``person_id``."""
        _require("get_last_event_of", home_id=home_id, person_id=person_id)
        data = await self._call_json(
            "get_last_event_of",
            "/api/getlasteventof",
            {"home_id": home_id, "person_id": person_id, "offset": offset},
        )
        return self._unwrap("get_last_event_of", data, "body")

    async def get_events_until(self, home_id: str, event_id: str) -> dict[str, Any]:
        _require("get_events_until", home_id=home_id, event_id=event_id)
        data = await self._call_json(
            "get_events_until",
            "/api/geteventsuntil",
            {"home_id": home_id, "event_id": event_id},
        )
        return self._unwrap("get_events_until", data, "body")

    async def get_camera_picture(self, image_id: str, key: str) -> bytes:
        """Download an event snapshot or a person face.

        Returns:
            The raw JPEG bytes.
        """
        _require("get_camera_picture", image_id=image_id, key=key)
        response = await self._call(
            "get_camera_picture",
            "/api/getcamerapicture",
            {"image_id": image_id, "key": key},
            method=HttpMethod.GET,
        )
        return response.content

    # Healthy Home Coach

    async def get_healthy_home_coach_data(
        self, device_id: Optional[str] = None
    ) -> list[dict[str, Any]]:
        """Read the Healthy Home Coach devices of the user."""
        data = await self._call_json(
            "get_healthy_home_coach_data",
            "/api/gethomecoachsdata",
            {"device_id": device_id},
            method=HttpMethod.GET,
        )
        return self._unwrap("get_healthy_home_coach_data", data, "body", "devices")
