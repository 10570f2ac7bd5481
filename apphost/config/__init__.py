"""
Application host configuration.

Environment-driven settings with pydantic models.
"""

from .settings import AppHostSettings, get_settings, load_settings, parameter_env_var

__all__ = [
    "AppHostSettings",
    "get_settings",
    "load_settings",
    "parameter_env_var",
]
