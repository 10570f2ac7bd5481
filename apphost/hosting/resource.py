"""
Resource model for the application host.

A resource is a named node in the application graph. Container resources
carry endpoints, an image (or a Dockerfile build), and produce a launch
command for the container runtime.

Resource names follow the same rules everywhere:
- start with an ASCII letter
- letters, digits and hyphens only
- no consecutive hyphens, no trailing hyphen
- at most 64 characters
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeVar

from pydantic import SecretStr

from apphost.errors import ConfigurationError, EndpointNotAllocatedError

logger = logging.getLogger(__name__)

A = TypeVar("A")

MAX_RESOURCE_NAME_LENGTH = 64
_RESOURCE_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9-]*$")


def validate_resource_name(name: str | None) -> str:
    """
    Validate a resource name.

    Args:
        name: Candidate resource name

    Returns:
        The name, unchanged

    Raises:
        ConfigurationError: If the name is missing or malformed
    """
    if name is None:
        raise ConfigurationError("Resource name is required")
    if not isinstance(name, str) or not name:
        raise ConfigurationError("Resource name must be a non-empty string")
    if len(name) > MAX_RESOURCE_NAME_LENGTH:
        raise ConfigurationError(
            f"Resource name '{name}' is longer than {MAX_RESOURCE_NAME_LENGTH} characters"
        )
    if not _RESOURCE_NAME_PATTERN.match(name) or "--" in name or name.endswith("-"):
        raise ConfigurationError(
            f"Resource name '{name}' is invalid. Names must start with a letter "
            "and contain only letters, digits and single hyphens"
        )
    return name


# =============================================================================
# Endpoints
# =============================================================================


@dataclass(frozen=True)
class AllocatedEndpoint:
    """Address assigned to an endpoint once the runtime starts the resource."""

    host: str
    port: int

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass
class EndpointAnnotation:
    """A network endpoint exposed by a resource."""

    name: str
    protocol: str = "tcp"
    scheme: str = "tcp"
    port: int | None = None
    target_port: int | None = None
    allocated: AllocatedEndpoint | None = None

    def require_allocated(self, resource: str | None = None) -> AllocatedEndpoint:
        if self.allocated is None:
            raise EndpointNotAllocatedError(self.name, resource=resource)
        return self.allocated

    def to_manifest(self) -> dict[str, Any]:
        binding: dict[str, Any] = {
            "scheme": self.scheme,
            "protocol": self.protocol,
            "transport": self.protocol,
        }
        if self.port is not None:
            binding["port"] = self.port
        if self.target_port is not None:
            binding["targetPort"] = self.target_port
        return binding


# =============================================================================
# Images
# =============================================================================


@dataclass(frozen=True)
class ContainerImage:
    """Image reference for a container resource."""

    image: str
    tag: str = "latest"
    registry: str | None = None

    @property
    def reference(self) -> str:
        ref = f"{self.image}:{self.tag}"
        if self.registry:
            ref = f"{self.registry}/{ref}"
        return ref


@dataclass(frozen=True)
class DockerfileBuild:
    """Build the container image from a local Dockerfile instead of pulling it."""

    context_path: str
    dockerfile_path: str | None = None

    def to_manifest(self) -> dict[str, str]:
        build = {"context": self.context_path}
        build["dockerfile"] = self.dockerfile_path or f"{self.context_path.rstrip('/')}/Dockerfile"
        return build


# =============================================================================
# Launch artifact
# =============================================================================


class SecretSource(Protocol):
    """Anything that yields a secret value on demand, such as a parameter."""

    name: str

    @property
    def value(self) -> SecretStr: ...


@dataclass(frozen=True)
class LaunchCommand:
    """
    What the container runtime needs to start a container process.

    Attributes:
        entrypoint: Executable the runtime starts
        command: Inner command tokens (before shell joining)
        args: Arguments passed to the entrypoint
        environment: Environment variables. Values are secret sources that
            are only read by resolved_environment(), so describing the
            command never materializes a secret
    """

    entrypoint: str
    command: tuple[str, ...]
    args: tuple[str, ...]
    environment: Mapping[str, SecretSource] = field(default_factory=dict)

    @property
    def command_line(self) -> str:
        return " ".join(self.command)

    def resolved_environment(self) -> dict[str, str]:
        """Plain-text environment, for handing to the container runtime only."""
        return {key: source.value.get_secret_value() for key, source in self.environment.items()}


# =============================================================================
# Resources
# =============================================================================


class Resource:
    """A named node in the application graph carrying annotations."""

    manifest_type = "resource.v0"

    def __init__(self, name: str | None):
        self.name = validate_resource_name(name)
        self.annotations: list[Any] = []

    def add_annotation(self, annotation: Any) -> None:
        self.annotations.append(annotation)

    def get_annotations(self, annotation_type: type[A]) -> list[A]:
        return [a for a in self.annotations if isinstance(a, annotation_type)]

    def get_last_annotation(self, annotation_type: type[A]) -> A | None:
        """Return the most recently added annotation of a type, if any."""
        matches = self.get_annotations(annotation_type)
        return matches[-1] if matches else None

    def to_manifest(self) -> dict[str, Any]:
        return {"type": self.manifest_type}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class ContainerResource(Resource):
    """A resource backed by a container."""

    manifest_type = "container.v0"

    def __init__(self, name: str | None):
        super().__init__(name)
        self.endpoints: dict[str, EndpointAnnotation] = {}
        self.image: ContainerImage | None = None
        self.build: DockerfileBuild | None = None
        self.health_check_keys: list[str] = []

    def add_endpoint(self, endpoint: EndpointAnnotation) -> None:
        if endpoint.name in self.endpoints:
            raise ConfigurationError(
                f"Endpoint with name '{endpoint.name}' already exists", resource=self.name
            )
        self.endpoints[endpoint.name] = endpoint
        logger.debug(
            f"[resource] Added endpoint | resource={self.name} | endpoint={endpoint.name} | "
            f"port={endpoint.port} | target_port={endpoint.target_port}"
        )

    def get_endpoint(self, name: str) -> EndpointAnnotation:
        try:
            return self.endpoints[name]
        except KeyError:
            raise ConfigurationError(
                f"Endpoint '{name}' is not defined", resource=self.name
            ) from None

    def launch_command(self) -> LaunchCommand | None:
        """Command the runtime should start the container with, if not the image default."""
        return None

    def environment_expressions(self) -> dict[str, str]:
        """Environment for the manifest, with secrets left as parameter references."""
        return {}

    def to_manifest(self) -> dict[str, Any]:
        manifest: dict[str, Any] = {"type": self.manifest_type}
        if self.build is not None:
            manifest["type"] = "container.v1"
            manifest["build"] = self.build.to_manifest()
        if self.image is not None:
            manifest["image"] = self.image.reference

        command = self.launch_command()
        if command is not None:
            manifest["entrypoint"] = command.entrypoint
            manifest["args"] = list(command.args)

        env = self.environment_expressions()
        if env:
            manifest["env"] = env
        if self.endpoints:
            manifest["bindings"] = {
                name: endpoint.to_manifest() for name, endpoint in self.endpoints.items()
            }
        return manifest


__all__ = [
    "MAX_RESOURCE_NAME_LENGTH",
    "validate_resource_name",
    "AllocatedEndpoint",
    "EndpointAnnotation",
    "ContainerImage",
    "DockerfileBuild",
    "LaunchCommand",
    "SecretSource",
    "Resource",
    "ContainerResource",
]
