"""
Settings for the application host.

Settings come from APPHOST_* environment variables. Parameter values
(passwords and other externally supplied inputs) use the
APPHOST_PARAMETERS_<NAME> form, where <NAME> is the parameter name
upper-cased with hyphens replaced by underscores:

    APPHOST_PARAMETERS_DB_PASSWORD=...   ->  parameter "db-password"

Security:
    Parameter values are SecretStr so they never appear in reprs or logs.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from functools import lru_cache

from pydantic import BaseModel, Field, SecretStr

ENV_PREFIX = "APPHOST_"
PARAMETERS_PREFIX = f"{ENV_PREFIX}PARAMETERS_"


class AppHostSettings(BaseModel):
    """Application host settings."""

    service_name: str = Field("apphost", description="Name reported by the HTTP surface")
    environment: str = Field("development", description="Deployment environment")
    debug: bool = False
    log_level: str = Field("INFO", description="Root log level")

    default_host: str = Field("localhost", description="Host used for allocated endpoints")
    health_check_timeout_seconds: float = Field(5.0, gt=0)

    parameters: dict[str, SecretStr] = Field(default_factory=dict)

    def get_parameter(self, name: str) -> str | None:
        value = self.parameters.get(name)
        return value.get_secret_value() if value is not None else None


def parameter_env_var(name: str) -> str:
    """Environment variable that supplies a parameter's value."""
    return PARAMETERS_PREFIX + name.upper().replace("-", "_")


def _parameters_from_env(environ: Mapping[str, str]) -> dict[str, SecretStr]:
    # Resource names never contain underscores, so the reverse mapping is exact
    return {
        key[len(PARAMETERS_PREFIX):].lower().replace("_", "-"): SecretStr(value)
        for key, value in environ.items()
        if key.startswith(PARAMETERS_PREFIX) and len(key) > len(PARAMETERS_PREFIX)
    }


def load_settings(environ: Mapping[str, str] | None = None) -> AppHostSettings:
    """Build settings from an environment mapping (os.environ by default)."""
    env = os.environ if environ is None else environ
    return AppHostSettings(
        service_name=env.get("APPHOST_SERVICE_NAME", "apphost"),
        environment=env.get("APPHOST_ENVIRONMENT", "development"),
        debug=env.get("APPHOST_DEBUG", "false").lower() == "true",
        log_level=env.get("APPHOST_LOG_LEVEL", "INFO").upper(),
        default_host=env.get("APPHOST_DEFAULT_HOST", "localhost"),
        health_check_timeout_seconds=float(env.get("APPHOST_HEALTH_CHECK_TIMEOUT", "5.0")),
        parameters=_parameters_from_env(env),
    )


@lru_cache()
def get_settings() -> AppHostSettings:
    """
    Get application settings from environment.

    Uses lru_cache for singleton pattern.
    """
    return load_settings()
