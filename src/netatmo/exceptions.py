"""Exceptions for the Netatmo API client.

All exceptions inherit from NetatmoError for easy catching.

Example:
    Catching endpoint failures::

        from netatmo import NetatmoClient, RequestError

        async with NetatmoClient(credentials) as client:
            try:
                devices = await client.get_stations_data()
            except RequestError as e:
                print(f"Netatmo call failed ({e.status_code}): {e}")

    Observing authentication problems::

        client.on_error(lambda error: print(f"auth problem: {error}"))
"""

from typing import Optional


class NetatmoError(Exception):
    """Base exception for all Netatmo errors."""

    pass


class ConfigurationError(NetatmoError):
    """Raised when a required credential field is missing.

    Detected before any network call. Only the first missing field is
    reported.

    Args:
        field: Name of the missing credential field.

    Example:
        >>> raise ConfigurationError("client_id")
        ConfigurationError: Authenticate 'client_id' not set.
    """

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Authenticate '{field}' not set.")


class AuthenticationError(NetatmoError):
    """Raised when a grant or refresh exchange fails.

    Covers rejection by the authorization server, transport failures and
    unreadable responses. These are delivered on the token manager's
    error channel rather than raised to the caller.

    Args:
        message: Human-readable description including the upstream detail.
        critical: True for the initial grant exchange, False for refreshes.
    """

    def __init__(self, message: str, critical: bool = True) -> None:
        self.critical = critical
        super().__init__(message)


class NetatmoConnectionError(NetatmoError):
    """Raised by the request dispatcher when the transport fails.

    Wraps timeouts, DNS failures and connection errors from httpx. No
    response was received from the server.
    """

    pass


class RequestError(NetatmoError):
    """Raised when an endpoint call fails.

    Args:
        message: Error message, prefixed with the endpoint name.
        status_code: HTTP status of the failed response, or None when
            no response was received.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ParameterError(NetatmoError):
    """Raised when a required endpoint parameter is missing.

    Example:
        >>> raise ParameterError("set_thermpoint", "device_id")
        ParameterError: set_thermpoint 'device_id' not set.
    """

    def __init__(self, method: str, field: str) -> None:
        self.method = method
        self.field = field
        super().__init__(f"{method} '{field}' not set.")
