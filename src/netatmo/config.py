"""Configuration loaded from environment variables and an optional .env file.

Variables:
    NETATMO_CLIENT_ID, NETATMO_CLIENT_SECRET: Application credentials.
    NETATMO_USERNAME, NETATMO_PASSWORD: Account for the password grant.
    NETATMO_SCOPE: Requested scopes. Defaults to DEFAULT_SCOPE.
    NETATMO_ACCESS_TOKEN: Pre-obtained token; takes precedence over the
        password grant when set.
    NETATMO_BASE_URL: API root. Defaults to https://api.netatmo.com.
    NETATMO_TIMEOUT: HTTP timeout in seconds. Defaults to 30.
"""

import os
from pathlib import Path
from typing import Optional, Union

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field

from .models import BearerToken, Credentials, PasswordGrant
from .types import BASE_URL, DEFAULT_SCOPE, DEFAULT_TIMEOUT


class Settings(BaseModel):
    """Client settings loaded from environment variables."""

    client_id: str = Field(default="", description="Netatmo application client id")
    client_secret: str = Field(default="", description="Netatmo application client secret")
    username: str = Field(default="", description="Netatmo account e-mail")
    password: str = Field(default="", description="Netatmo account password")
    scope: str = Field(default=DEFAULT_SCOPE, description="Space-separated OAuth2 scopes")
    access_token: str = Field(default="", description="Pre-obtained access token")
    base_url: str = Field(default=BASE_URL, description="API root URL")
    timeout: float = Field(default=DEFAULT_TIMEOUT, description="HTTP timeout in seconds")

    def credentials(self) -> Credentials:
        """Return a BearerToken if an access token is configured, else a PasswordGrant."""
        if self.access_token:
            return BearerToken(access_token=self.access_token)
        return PasswordGrant(
            client_id=self.client_id,
            client_secret=self.client_secret,
            username=self.username,
            password=self.password,
            scope=self.scope,
        )


def _env(key: str, default: str = "") -> str:
    val = os.environ.get(key, "")
    if val:
        return val.strip().strip('"')
    return default


def load_settings(env_file: Optional[Union[str, Path]] = None) -> Settings:
    """Load settings from the environment.

    Args:
        env_file: .env file to load first. When omitted, python-dotenv
            searches for a .env file from the current directory upwards.
            Variables already set in the environment win.
    """
    if env_file is not None:
        load_dotenv(env_file)
    else:
        load_dotenv(find_dotenv(usecwd=True))

    return Settings(
        client_id=_env("NETATMO_CLIENT_ID"),
        client_secret=_env("NETATMO_CLIENT_SECRET"),
        username=_env("NETATMO_USERNAME"),
        password=_env("NETATMO_PASSWORD"),
        scope=_env("NETATMO_SCOPE", default=DEFAULT_SCOPE),
        access_token=_env("NETATMO_ACCESS_TOKEN"),
        base_url=_env("NETATMO_BASE_URL", default=BASE_URL),
        timeout=float(_env("NETATMO_TIMEOUT", default=str(DEFAULT_TIMEOUT))),
    )
