"""
Redis launch command assembly.

Turns a set of optional facets (config file, password, persistence) into
the command the container runtime starts. The result is a pure function
of its input: assembling the same options twice gives the same command.

The Redis command is run through ``/bin/sh -c`` so that the password
placeholder ``$REDIS_PASSWORD`` is expanded by the shell inside the
container. The secret itself only ever travels in the environment
mapping, never in the argument list, and is not read until the runtime
asks for the resolved environment.

Token order is fixed:

    redis-server [<config file>] [--requirepass $REDIS_PASSWORD] [--save <seconds> <keys>]

Command-line options are applied after the config file is loaded, so the
generated flags take precedence over directives in the file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, Union

from apphost.errors import ConfigurationError
from apphost.hosting.resource import LaunchCommand, validate_resource_name

from .connection import DEFAULT_REDIS_PORT

if TYPE_CHECKING:
    from apphost.hosting.parameters import ParameterResource

REDIS_EXECUTABLE = "redis-server"
SHELL_ENTRYPOINT = "/bin/sh"
PASSWORD_ENV_VAR = "REDIS_PASSWORD"
DEFAULT_PERSISTENCE_INTERVAL = timedelta(seconds=60)


@dataclass(frozen=True)
class NoPersistence:
    """No periodic snapshotting: no --save flag is emitted."""


NO_PERSISTENCE = NoPersistence()


@dataclass(frozen=True)
class PersistencePolicy:
    """
    Snapshot the dataset every ``interval`` if at least
    ``keys_changed_threshold`` keys changed.

    ``interval`` defaults to 60 seconds and must be a whole number of seconds.
    """

    interval: timedelta | None = None
    keys_changed_threshold: int = 1

    def __post_init__(self) -> None:
        if self.interval is not None and not isinstance(self.interval, timedelta):
            raise ConfigurationError("Persistence interval must be a timedelta")
        interval = self.effective_interval
        if interval <= timedelta(0):
            raise ConfigurationError("Persistence interval must be positive")
        if interval.microseconds:
            raise ConfigurationError("Persistence interval must be a whole number of seconds")
        if isinstance(self.keys_changed_threshold, bool) or not isinstance(
            self.keys_changed_threshold, int
        ):
            raise ConfigurationError("Persistence keys_changed_threshold must be an integer")
        if self.keys_changed_threshold < 0:
            raise ConfigurationError("Persistence keys_changed_threshold must not be negative")

    @property
    def effective_interval(self) -> timedelta:
        return self.interval if self.interval is not None else DEFAULT_PERSISTENCE_INTERVAL

    @property
    def interval_seconds(self) -> int:
        return int(self.effective_interval.total_seconds())


Persistence = Union[NoPersistence, PersistencePolicy]


@dataclass(frozen=True)
class RedisLaunchOptions:
    """Everything the launch command depends on."""

    name: str
    port: int | None = None
    target_port: int = DEFAULT_REDIS_PORT
    config_file_path: str | None = None
    credential: ParameterResource | None = None
    persistence: Persistence = field(default=NO_PERSISTENCE)


def format_invariant(value: int) -> str:
    """Plain decimal digits: no grouping, no locale."""
    return str(int(value))


def assemble_command(options: RedisLaunchOptions) -> LaunchCommand:
    """
    Build the launch command for a Redis container.

    Args:
        options: Resource facets

    Returns:
        LaunchCommand with the shell entrypoint, the ``-c`` argument pair
        and the environment

    Raises:
        ConfigurationError: If the resource name is missing
    """
    validate_resource_name(options.name)

    command = [REDIS_EXECUTABLE]
    if options.config_file_path:
        command.append(options.config_file_path)

    environment = {}
    if options.credential is not None:
        command.extend(["--requirepass", f"${PASSWORD_ENV_VAR}"])
        environment[PASSWORD_ENV_VAR] = options.credential

    if isinstance(options.persistence, PersistencePolicy):
        command.extend(
            [
                "--save",
                format_invariant(options.persistence.interval_seconds),
                format_invariant(options.persistence.keys_changed_threshold),
            ]
        )

    return LaunchCommand(
        entrypoint=SHELL_ENTRYPOINT,
        command=tuple(command),
        args=("-c", " ".join(command)),
        environment=environment,
    )


__all__ = [
    "REDIS_EXECUTABLE",
    "SHELL_ENTRYPOINT",
    "PASSWORD_ENV_VAR",
    "DEFAULT_PERSISTENCE_INTERVAL",
    "NoPersistence",
    "NO_PERSISTENCE",
    "PersistencePolicy",
    "Persistence",
    "RedisLaunchOptions",
    "format_invariant",
    "assemble_command",
]
