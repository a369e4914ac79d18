"""Async client for the Netatmo cloud API.

This package binds the Netatmo REST API for weather stations, Energy
thermostats and valves, Home+ Security cameras and the Healthy Home
Coach.

Key features:
    - OAuth2 password grant with silent, chained token refresh
    - Calls made before authentication completes are held back and sent
      once a token is available
    - One async method per REST endpoint
    - Per-instance token state: several clients can run side by side
    - Optional DataFrame conversion via netatmo.dataframe module

Authentication:
    The token manager posts the credentials to ``/oauth2/token`` and
    schedules a refresh ``expires_in`` seconds later. A failed refresh is
    reported on the error channel and the previous token stays in use.
    A pre-obtained token can be passed as BearerToken instead; it is never
    refreshed.

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
                client.on_error(lambda error: print(f"auth: {error}"))
                devices = await client.get_stations_data()
                for device in devices:
                    print(device["station_name"])

        asyncio.run(main())

    Configure from the environment::

        async with NetatmoClient.from_settings() as client:
            coaches = await client.get_healthy_home_coach_data()

See Also:
    - Netatmo API docs: https://dev.netatmo.com/apidocumentation
"""

from .auth import TokenManager
from .client import NetatmoClient
from .config import Settings, load_settings
from .dispatcher import HttpxDispatcher, RequestDispatcher
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    NetatmoConnectionError,
    NetatmoError,
    ParameterError,
    RequestError,
)
from .models import (
    BearerToken,
    PasswordGrant,
    RawResponse,
    TokenResponse,
    TokenState,
)
from .scheduler import LoopScheduler, Scheduler, TimerHandle
from .types import (
    BASE_URL,
    DEFAULT_SCOPE,
    DEFAULT_TIMEOUT,
    MAX_MEASURE_LIMIT,
    TOKEN_URL,
    HttpMethod,
    MeasureScale,
)

__all__ = [
    "NetatmoClient",
    "TokenManager",
    "Settings",
    "load_settings",
    "RequestDispatcher",
    "HttpxDispatcher",
    "Scheduler",
    "LoopScheduler",
    "TimerHandle",
    "PasswordGrant",
    "BearerToken",
    "TokenResponse",
    "TokenState",
    "RawResponse",
    "HttpMethod",
    "MeasureScale",
    "NetatmoError",
    "ConfigurationError",
    "AuthenticationError",
    "NetatmoConnectionError",
    "RequestError",
    "ParameterError",
    "BASE_URL",
    "TOKEN_URL",
    "DEFAULT_SCOPE",
    "DEFAULT_TIMEOUT",
    "MAX_MEASURE_LIMIT",
]
