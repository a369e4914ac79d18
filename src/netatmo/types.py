"""Types and constants for the Netatmo API client.

This module defines enumerations and configuration constants used
throughout the Netatmo client.

Example:
    Using MeasureScale enum::

        from netatmo import MeasureScale, NetatmoClient

        async with NetatmoClient(credentials) as client:
            measure = await client.get_room_measure(
                home_id=home_id,
                room_id=room_id,
                scale=MeasureScale.ONE_HOUR,
                type=["temperature", "sp_temperature"],
            )
"""

from enum import Enum


class HttpMethod(str, Enum):
    """HTTP methods used by the Netatmo REST API.

    The API only uses GET for a few read-only endpoints and POST with a
    form-encoded body for everything else, including the token endpoint.
    """

    GET = "GET"
    POST = "POST"


class MeasureScale(str, Enum):
    """Aggregation step for room measures.

    Example:
        >>> MeasureScale.ONE_HOUR.value
        '1hour'
    """

    MAX = "max"
    THIRTY_MINUTES = "30min"
    ONE_HOUR = "1hour"
    THREE_HOURS = "3hours"
    ONE_DAY = "1day"
    ONE_WEEK = "1week"
    ONE_MONTH = "1month"


BASE_URL = "https://api.netatmo.com"
"""str: Root URL of the Netatmo cloud API."""

TOKEN_PATH = "/oauth2/token"
"""str: Path of the OAuth2 token endpoint, relative to BASE_URL."""

TOKEN_URL = f"{BASE_URL}{TOKEN_PATH}"
"""str: Absolute URL of the OAuth2 token endpoint.

Both the password grant and the refresh-token grant are posted here.
"""

DEFAULT_SCOPE = (
    "read_station read_thermostat write_thermostat read_camera read_homecoach"
)
"""str: Scope requested when the caller supplies none.

Union of the permissions needed by every endpoint this client exposes.
"""

DEFAULT_TIMEOUT = 30.0
"""float: Default HTTP request timeout in seconds."""

MAX_MEASURE_LIMIT = 1024
"""int: Maximum number of measures the API returns per request.

Larger ``limit`` values passed to get_room_measure() are capped to this.
"""

MILLISECONDS_THRESHOLD = 1e10
"""float: Epoch values above this are treated as milliseconds."""

DEFAULT_HG_TEMP = 10
"""int: Default frost-guard temperature for home schedules, in °C."""

DEFAULT_AWAY_TEMP = 15
"""int: Default away temperature for home schedules, in °C."""
