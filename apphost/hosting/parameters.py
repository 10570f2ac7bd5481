"""
Parameter resources.

Parameters are externally supplied values (typically secrets) that other
resources reference. A parameter's value is looked up from settings first;
secret parameters with a generate default fall back to a random value.
The value is materialized once and cached, so every consumer sees the same
value for the lifetime of the process.
"""

from __future__ import annotations

import logging
import secrets
import string
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import SecretStr

from apphost.errors import ConfigurationError

from .resource import Resource

if TYPE_CHECKING:
    from .builder import DistributedApplicationBuilder

logger = logging.getLogger(__name__)

SPECIAL_CHARACTERS = "-_.{}~()*+!?"


@dataclass(frozen=True)
class GenerateParameterDefault:
    """
    Recipe for generating a random parameter value.

    Every enabled character class contributes at least one character.
    """

    min_length: int = 22
    lower: bool = True
    upper: bool = True
    numeric: bool = True
    special: bool = True

    def __post_init__(self) -> None:
        if self.min_length < 1:
            raise ConfigurationError("Generated parameter length must be positive")
        if not self._classes():
            raise ConfigurationError("At least one character class must be enabled")

    def _classes(self) -> list[str]:
        classes = []
        if self.lower:
            classes.append(string.ascii_lowercase)
        if self.upper:
            classes.append(string.ascii_uppercase)
        if self.numeric:
            classes.append(string.digits)
        if self.special:
            classes.append(SPECIAL_CHARACTERS)
        return classes

    def generate(self) -> str:
        classes = self._classes()
        length = max(self.min_length, len(classes))
        chars = [secrets.choice(cls) for cls in classes]
        alphabet = "".join(classes)
        chars.extend(secrets.choice(alphabet) for _ in range(length - len(chars)))
        secrets.SystemRandom().shuffle(chars)
        return "".join(chars)

    def to_manifest(self) -> dict[str, Any]:
        return {
            "generate": {
                "minLength": self.min_length,
                "lower": self.lower,
                "upper": self.upper,
                "numeric": self.numeric,
                "special": self.special,
            }
        }


class ParameterResource(Resource):
    """A named, externally supplied value."""

    manifest_type = "parameter.v0"

    def __init__(
        self,
        name: str,
        value_factory: Callable[[], str | None],
        *,
        secret: bool = False,
        default: GenerateParameterDefault | None = None,
    ):
        super().__init__(name)
        self.secret = secret
        self.default = default
        self._value_factory = value_factory
        self._value: SecretStr | None = None

    @property
    def value(self) -> SecretStr:
        """
        The parameter value, materialized on first access.

        Raises:
            ConfigurationError: If no value is configured and there is no default
        """
        if self._value is None:
            raw = self._value_factory()
            if raw is None and self.default is not None:
                logger.debug(f"[parameters] Generating default value | parameter={self.name}")
                raw = self.default.generate()
            if raw is None:
                raise ConfigurationError(
                    f"Parameter '{self.name}' has no configured value", resource=self.name
                )
            self._value = SecretStr(raw)
        return self._value

    @property
    def value_expression(self) -> str:
        return f"{{{self.name}.value}}"

    def to_manifest(self) -> dict[str, Any]:
        value_input: dict[str, Any] = {"type": "string"}
        if self.secret:
            value_input["secret"] = True
        if self.default is not None:
            value_input["default"] = self.default.to_manifest()
        return {
            "type": self.manifest_type,
            "value": f"{{{self.name}.inputs.value}}",
            "inputs": {"value": value_input},
        }


def add_parameter(
    builder: DistributedApplicationBuilder,
    name: str,
    value: str | None = None,
    *,
    secret: bool = False,
):
    """
    Declare a parameter resource.

    Without an explicit value the parameter reads its value from settings
    (``APPHOST_PARAMETERS_<NAME>``) when it is first used.
    """
    settings = builder.settings

    def _lookup() -> str | None:
        return value if value is not None else settings.get_parameter(name)

    parameter = ParameterResource(name, _lookup, secret=secret)
    return builder.add_resource(parameter)


def create_default_password_parameter(
    builder: DistributedApplicationBuilder,
    name: str,
    *,
    lower: bool = True,
    upper: bool = True,
    numeric: bool = True,
    special: bool = True,
    min_length: int = 22,
) -> ParameterResource:
    """
    Create a secret parameter that generates a password unless one is configured.

    The parameter is added to the application graph so its name is reserved.
    """
    settings = builder.settings
    parameter = ParameterResource(
        name,
        lambda: settings.get_parameter(name),
        secret=True,
        default=GenerateParameterDefault(
            min_length=min_length,
            lower=lower,
            upper=upper,
            numeric=numeric,
            special=special,
        ),
    )
    builder.add_resource(parameter)
    return parameter


__all__ = [
    "GenerateParameterDefault",
    "ParameterResource",
    "add_parameter",
    "create_default_password_parameter",
]
