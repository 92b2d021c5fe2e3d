"""
This module manages the optional bearer token sent when opening an event stream.
The token can be passed directly or read from the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

ENV_API_KEY = "EVENTSOURCE_API_KEY"


@dataclass(frozen=True, slots=True)
class AuthConfig:
    """
    Credentials for an SSE endpoint. Public streams need none, so the key may be None.
    """

    api_key: str | None

    @staticmethod
    def from_env_or_value(api_key: str | None, *, required: bool = False) -> AuthConfig:
        """
        Create an AuthConfig instance from a provided value or environment variable.

        Args:
            api_key: Optional API key string provided by the user.
            required: Fail when neither the argument nor the environment has a key.

        Returns:
            An AuthConfig instance; its api_key is None when no key was found.

        Raises:
            ValueError: If `required` is set and no API key is found.
        """
        key = api_key or os.getenv(ENV_API_KEY) or None

        if required and not key:
            raise ValueError(
                "API key missing. Define EVENTSOURCE_API_KEY in environment or pass api_key value"
            )
        return AuthConfig(api_key=key)
