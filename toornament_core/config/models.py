"""Configuration models using Pydantic."""

import os
import re
from typing import Optional

from pydantic import BaseModel, Field, field_validator

API_BASE = "https://api.toornament.com"


def resolve_env_vars(value: str) -> str:
    """
    Resolve environment variables in a string.

    Supports formats:
    - ${VAR} - Required variable
    - ${VAR:-default} - Variable with default value
    """
    pattern = r'\$\{([^}:]+)(?::-([^}]*))?\}'

    def replacer(match):
        var_name = match.group(1)
        default = match.group(2)

        env_value = os.environ.get(var_name)
        if env_value is not None:
            return env_value
        elif default is not None:
            return default
        else:
            raise ValueError(f"Environment variable '{var_name}' is not set and has no default")

    return re.sub(pattern, replacer, value)


def _resolve_credential(value: Optional[str], env_name: str) -> str:
    if isinstance(value, str) and "${" in value:
        return resolve_env_vars(value)
    if not value:
        return os.environ.get(env_name, "")
    return value


class ClientConfig(BaseModel):
    """Toornament client configuration."""

    model_config = {"extra": "ignore"}

    api_key: str = Field(
        default="", repr=False, validate_default=True, description="Application API key"
    )
    client_id: str = Field(default="", validate_default=True, description="OAuth2 client ID")
    client_secret: str = Field(
        default="", repr=False, validate_default=True, description="OAuth2 client secret"
    )
    api_url: str = Field(
        default="", validate_default=True, description="Toornament API base URL"
    )
    timeout: float = Field(default=30.0, gt=0, description="Transport timeout in seconds")
    token_leeway_seconds: float = Field(
        default=0.0,
        ge=0,
        description="Treat the access token as expired this many seconds early",
    )

    @field_validator("api_key", mode="before")
    @classmethod
    def resolve_api_key(cls, v) -> str:
        """Resolve from explicit value, ${VAR} syntax, or TOORNAMENT_API_KEY."""
        return _resolve_credential(v, "TOORNAMENT_API_KEY")

    @field_validator("client_id", mode="before")
    @classmethod
    def resolve_client_id(cls, v) -> str:
        return _resolve_credential(v, "TOORNAMENT_CLIENT_ID")

    @field_validator("client_secret", mode="before")
    @classmethod
    def resolve_client_secret(cls, v) -> str:
        return _resolve_credential(v, "TOORNAMENT_CLIENT_SECRET")

    @field_validator("api_url", mode="before")
    @classmethod
    def resolve_api_url(cls, v):
        if isinstance(v, str) and "${" in v:
            v = resolve_env_vars(v)
        if not v:
            v = os.environ.get("TOORNAMENT_API_URL") or API_BASE
        return v.rstrip("/")

    @property
    def is_complete(self) -> bool:
        """True when all three credentials are present."""
        return bool(self.api_key and self.client_id and self.client_secret)
