"""OAuth2 token lifecycle for the Netatmo API.

TokenManager owns the access token of one client. It performs the
password-grant exchange, keeps the token fresh with a chain of one-shot
refresh timers, and holds back API calls until a token is available.

Lifecycle:
    1. initialize() validates the credentials and starts the grant
       exchange in the background (or adopts a pre-obtained token).
    2. On success the token is stored, a refresh is scheduled for
       ``expires_in`` seconds later, and the ready signal fires once.
    3. Each refresh replaces the token and schedules the next refresh.
       A failed refresh leaves the previous token in place.
    4. close() cancels the pending refresh and any exchange in flight.

Errors from the exchanges are not raised to the caller. They are logged
and delivered to observers registered with on_error().

Example:
    Standalone use::

        dispatcher = HttpxDispatcher()
        manager = TokenManager(dispatcher=dispatcher)
        manager.on_error(lambda error: print(f"auth failed: {error}"))
        manager.initialize(PasswordGrant(
            client_id="abc",
            client_secret="s3cr3t",
            username="me@example.com",
            password="hunter2",
        ))
        token = await manager.wait_for_token()
"""

import asyncio
import logging
from datetime import datetime, timedelta
from datetime import timezone as dt_timezone
from typing import Any, Callable, Mapping, Optional, Union

from .dispatcher import RequestDispatcher
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    NetatmoConnectionError,
    NetatmoError,
)
from .models import (
    BearerToken,
    Credentials,
    PasswordGrant,
    TokenResponse,
    TokenState,
)
from .scheduler import LoopScheduler, Scheduler, TimerHandle
from .types import DEFAULT_SCOPE, TOKEN_URL, HttpMethod

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[NetatmoError], Any]
ReadyCallback = Callable[[], Any]

REQUIRED_GRANT_FIELDS = ("client_id", "client_secret", "username", "password")
"""tuple[str, ...]: Password-grant fields, in the order they are validated."""


def _utcnow() -> datetime:
    return datetime.now(dt_timezone.utc)


class TokenManager:
    """Single source of truth for the current access token.

    Args:
        dispatcher: Sends the token requests.
        scheduler: Schedules refreshes. Defaults to the running event loop.
        clock: Returns the current time, used to compute expiry.
        token_url: URL of the OAuth2 token endpoint.

    Attributes:
        _state: Current TokenState, replaced on every successful exchange.
        _ready: Set once a token is available.
        _refresh_handle: Pending refresh timer, if any.
        _refresh_task: Last refresh exchange started by the timer.
    """

    def __init__(
        self,
        *,
        dispatcher: RequestDispatcher,
        scheduler: Optional[Scheduler] = None,
        clock: Optional[Callable[[], datetime]] = None,
        token_url: str = TOKEN_URL,
    ) -> None:
        self._dispatcher = dispatcher
        self._scheduler = scheduler or LoopScheduler()
        self._clock = clock or _utcnow
        self._token_url = token_url

        self._state = TokenState()
        self._client_id: Optional[str] = None
        self._client_secret: Optional[str] = None

        self._ready = asyncio.Event()
        self._ready_callbacks: list[ReadyCallback] = []
        self._error_callbacks: list[ErrorCallback] = []

        self._refresh_handle: Optional[TimerHandle] = None
        self._refresh_task: Optional[asyncio.Task] = None
        self._grant_task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def token_state(self) -> TokenState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    def current_token(self) -> Optional[str]:
        """Return the current access token without waiting, or None."""
        return self._state.access_token

    def on_ready(self, callback: ReadyCallback) -> None:
        """Run ``callback`` once a token is available.

        Runs immediately if the manager is already ready, otherwise when
        the ready signal fires. Each registered callback runs once.
        """
        if self._ready.is_set():
            callback()
            return
        self._ready_callbacks.append(callback)

    def on_error(self, callback: ErrorCallback) -> None:
        """Register an observer for ConfigurationError and AuthenticationError."""
        self._error_callbacks.append(callback)

    async def wait_until_ready(self) -> None:
        await self._ready.wait()

    async def wait_for_token(self) -> str:
        """Return the access token, waiting for the ready signal if needed.

        Note:
            Never returns if the initial grant exchange fails. Observe
            on_error() to detect that case.
        """
        token = self._state.access_token
        if token is None:
            await self._ready.wait()
            token = self._state.access_token
        return token

    def initialize(
        self, credentials: Union[Credentials, Mapping[str, Any], None]
    ) -> Optional[asyncio.Task]:
        """Validate credentials and start the grant exchange.

        Must be called while an event loop is running. Returns without
        waiting for the network.

        Args:
            credentials: PasswordGrant, BearerToken, or a mapping with the
                same keys.

        Returns:
            The background grant task, or None for a BearerToken.

        Raises:
            ConfigurationError: If a required field is missing. No network
                call is made in that case.
        """
        credentials = self._validate(credentials)
        self._closed = False
        if isinstance(credentials, BearerToken):
            self._adopt_bearer(credentials)
            return None

        loop = asyncio.get_running_loop()
        self._grant_task = loop.create_task(self._grant(credentials))
        return self._grant_task

    async def authenticate(
        self, credentials: Union[Credentials, Mapping[str, Any], None]
    ) -> Optional[TokenResponse]:
        """Validate credentials and run the grant exchange to completion.

        Returns:
            The token response, or None if the exchange failed. Failures
            are reported on the error channel.

        Raises:
            ConfigurationError: If a required field is missing.
        """
        credentials = self._validate(credentials)
        self._closed = False
        if isinstance(credentials, BearerToken):
            self._adopt_bearer(credentials)
            return TokenResponse(access_token=credentials.access_token)
        return await self._grant(credentials)

    def close(self) -> None:
        """Cancel the pending refresh and any exchange still in flight.

        Safe to call multiple times.
        """
        self._closed = True
        if self._refresh_handle is not None:
            self._refresh_handle.cancel()
            self._refresh_handle = None

        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        for task in (self._grant_task, self._refresh_task):
            if task is not None and not task.done() and task is not current:
                task.cancel()

    def _validate(
        self, credentials: Union[Credentials, Mapping[str, Any], None]
    ) -> Credentials:
        if credentials is None:
            self._fail_configuration("credentials")

        if isinstance(credentials, Mapping):
            if credentials.get("access_token"):
                credentials = BearerToken(access_token=credentials["access_token"])
            else:
                credentials = PasswordGrant(
                    **{
                        key: credentials.get(key)
                        for key in (*REQUIRED_GRANT_FIELDS, "scope")
                    }
                )

        if isinstance(credentials, BearerToken):
            if not credentials.access_token:
                self._fail_configuration("access_token")
            return credentials

        for field in REQUIRED_GRANT_FIELDS:
            if not getattr(credentials, field):
                self._fail_configuration(field)
        return credentials

    def _fail_configuration(self, field: str) -> None:
        error = ConfigurationError(field)
        self._report(error)
        raise error

    def _adopt_bearer(self, credentials: BearerToken) -> None:
        self._state = TokenState(access_token=credentials.access_token)
        logger.info("Using pre-obtained Netatmo access token")
        self._signal_ready()

    async def _grant(self, credentials: PasswordGrant) -> Optional[TokenResponse]:
        self._client_id = credentials.client_id
        self._client_secret = credentials.client_secret

        form = {
            "client_id": credentials.client_id,
            "client_secret": credentials.client_secret,
            "username": credentials.username,
            "password": credentials.password,
            "scope": credentials.scope or DEFAULT_SCOPE,
            "grant_type": "password",
        }
        token = await self._exchange(form, "Authenticate error", critical=True)
        if token is None:
            return None

        self._store(token)
        logger.info("Authenticated with Netatmo")
        self._signal_ready()
        return token

    def _on_refresh_due(self, refresh_token: Optional[str]) -> None:
        self._refresh_handle = None
        loop = asyncio.get_running_loop()
        self._refresh_task = loop.create_task(self._refresh(refresh_token))

    async def _refresh(self, refresh_token: Optional[str]) -> Optional[TokenResponse]:
        form = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token or "",
            "client_id": self._client_id,
            "client_secret": self._client_secret,
        }
        token = await self._exchange(form, "Authenticate refresh error", critical=False)
        if token is None:
            return None

        self._store(token)
        logger.info("Refreshed Netatmo access token")
        return token

    async def _exchange(
        self, form: dict[str, Any], context: str, critical: bool
    ) -> Optional[TokenResponse]:
        try:
            response = await self._dispatcher.dispatch(
                HttpMethod.POST, self._token_url, body=form
            )
        except NetatmoConnectionError as e:
            error = AuthenticationError(f"{context}: No response", critical)
            error.__cause__ = e
            self._report(error)
            return None

        if response.status_code != 200:
            self._report(
                AuthenticationError(f"{context}: {response.error_message()}", critical)
            )
            return None

        if not response.is_json:
            self._report(
                AuthenticationError(f"{context}: Unexpected content type", critical)
            )
            return None

        try:
            return TokenResponse(**response.json_body())
        except (ValueError, TypeError):
            self._report(
                AuthenticationError(f"{context}: Unexpected response", critical)
            )
            return None

    def _store(self, token: TokenResponse) -> None:
        expires_at = None
        if token.expires_in:
            expires_at = self._clock() + timedelta(seconds=token.expires_in)

        # Keep the previous refresh token when the server does not rotate it.
        self._state = TokenState(
            access_token=token.access_token,
            refresh_token=token.refresh_token or self._state.refresh_token,
            expires_at=expires_at,
        )

        if token.expires_in:
            self._arm_refresh(token.expires_in, self._state.refresh_token)

    def _arm_refresh(self, delay: float, refresh_token: Optional[str]) -> None:
        if self._closed:
            return
        if self._refresh_handle is not None:
            self._refresh_handle.cancel()
        logger.debug(f"Next token refresh in {delay}s")
        self._refresh_handle = self._scheduler.call_later(
            delay, self._on_refresh_due, refresh_token
        )

    def _signal_ready(self) -> None:
        self._ready.set()
        callbacks, self._ready_callbacks = self._ready_callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Ready callback failed")

    def _report(self, error: NetatmoError) -> None:
        if isinstance(error, AuthenticationError) and not error.critical:
            logger.warning(str(error))
        else:
            logger.error(str(error))
        for callback in list(self._error_callbacks):
            try:
                callback(error)
            except Exception:
                logger.exception("Error callback failed")
