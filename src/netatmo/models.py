"""Pydantic models for Netatmo credentials, tokens and raw responses.

Key model groups:
    1. **Credentials**: PasswordGrant, BearerToken
    2. **Token lifecycle**: TokenResponse, TokenState
    3. **Transport**: RawResponse
    4. **Error handling**: ErrorResponse, ErrorDetail

Note:
    Credential fields are optional at the model level. Required fields are
    checked one by one by the token manager so that the first missing
    field is reported on its own instead of as an aggregate.

Example:
    Building credentials::

        from netatmo import PasswordGrant

        credentials = PasswordGrant(
            client_id="abc",
            client_secret="s3cr3t",
            username="me@example.com",
            password="hunter2",
        )
"""

import json
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict


class PasswordGrant(BaseModel):
    """Credentials for the OAuth2 resource-owner password grant.

    Attributes:
        client_id: Application client id from dev.netatmo.com.
        client_secret: Application client secret.
        username: Netatmo account e-mail.
        password: Netatmo account password.
        scope: Space-separated scopes. Defaults to DEFAULT_SCOPE when empty.
    """

    model_config = ConfigDict(hide_input_in_errors=True)

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    scope: Optional[str] = None


class BearerToken(BaseModel):
    """A pre-obtained access token. Cannot be refreshed."""

    access_token: Optional[str] = None


Credentials = Union[PasswordGrant, BearerToken]


class TokenResponse(BaseModel):
    """Successful response from the OAuth2 token endpoint.

    Attributes:
        access_token: Token to send with API calls.
        expires_in: Lifetime of the token in seconds, if announced.
        refresh_token: Token used to obtain the next access token.
    """

    model_config = ConfigDict(extra="allow")

    access_token: str
    expires_in: Optional[int] = None
    refresh_token: Optional[str] = None


class TokenState(BaseModel):
    """Snapshot of the token manager's credentials.

    Replaced as a whole on every successful exchange, never mutated in
    place.
    """

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None


class ErrorDetail(BaseModel):
    """Structured error detail: ``{"code": 2, "message": "Invalid access_token"}``."""

    model_config = ConfigDict(extra="allow")

    code: Optional[int] = None
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    """Error envelope returned by the API when the content type is JSON.

    The token endpoint uses the ``{"error": "invalid_grant"}`` form, the
    API endpoints use ``{"error": {"code": ..., "message": ...}}``.
    """

    model_config = ConfigDict(extra="allow")

    error: Union[ErrorDetail, str]

    @property
    def message(self) -> str:
        if isinstance(self.error, ErrorDetail):
            return self.error.message or str(self.error.code)
        return self.error


class RawResponse(BaseModel):
    """Status, headers and body of a single HTTP exchange.

    Attributes:
        status_code: HTTP status code.
        headers: Response headers. Lookup through header() is case-insensitive.
        content: Undecoded response body.
    """

    status_code: int
    headers: dict[str, str] = {}
    content: bytes = b""

    def header(self, name: str) -> Optional[str]:
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    @property
    def is_json(self) -> bool:
        content_type = self.header("content-type") or ""
        return "application/json" in content_type.strip().lower()

    def json_body(self) -> Any:
        return json.loads(self.content)

    def error_message(self) -> str:
        """Extract the upstream error message from a failed response.

        Returns:
            The ``error.message`` or ``error`` string of a JSON error
            envelope, otherwise ``"Status code <n>"``.
        """
        if self.content and self.is_json:
            try:
                return ErrorResponse(**self.json_body()).message
            except (ValueError, TypeError):
                pass
        return f"Status code {self.status_code}"
