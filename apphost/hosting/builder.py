"""
Application builder.

Resources are declared on a DistributedApplicationBuilder, configured
through fluent ResourceBuilder methods, and frozen into a
DistributedApplication by build().

Usage:
    builder = DistributedApplicationBuilder()
    redis = add_redis_v8(builder, "cache", port=6379).with_persistence()
    app = builder.build()

    # the container runtime reports the server reachable
    await app.notify_resource_ready("cache")
    results = await app.check_health()
    await app.shutdown()
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, Generic, TypeVar

from apphost.config import AppHostSettings, get_settings
from apphost.errors import ConfigurationError
from apphost.health import HealthCheckRegistry, HealthCheckResult

from .eventing import ApplicationStoppingEvent, ConnectionStringAvailableEvent, EventBus
from .resource import (
    AllocatedEndpoint,
    ContainerImage,
    ContainerResource,
    DockerfileBuild,
    EndpointAnnotation,
    Resource,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Resource)


class ResourceBuilder(Generic[R]):
    """Fluent configuration of one declared resource."""

    def __init__(self, application_builder: DistributedApplicationBuilder, resource: R):
        self.application_builder = application_builder
        self.resource = resource

    def _container(self) -> ContainerResource:
        if not isinstance(self.resource, ContainerResource):
            raise ConfigurationError(
                f"{type(self.resource).__name__} is not a container resource",
                resource=self.resource.name,
            )
        return self.resource

    def with_annotation(self, annotation: Any) -> ResourceBuilder[R]:
        self.resource.add_annotation(annotation)
        return self

    def with_endpoint(
        self,
        port: int | None = None,
        target_port: int | None = None,
        *,
        name: str | None = None,
        scheme: str = "tcp",
        protocol: str = "tcp",
    ) -> ResourceBuilder[R]:
        """
        Add an endpoint.

        Raises:
            ConfigurationError: If an endpoint with this name already exists
        """
        self._container().add_endpoint(
            EndpointAnnotation(
                name=name or scheme,
                protocol=protocol,
                scheme=scheme,
                port=port,
                target_port=target_port,
            )
        )
        return self

    def configure_endpoint(
        self,
        name: str,
        callback: Callable[[EndpointAnnotation], None],
        *,
        create_if_missing: bool = True,
    ) -> ResourceBuilder[R]:
        """Modify an existing endpoint in place, creating it first if allowed."""
        container = self._container()
        endpoint = container.endpoints.get(name)
        if endpoint is None:
            if not create_if_missing:
                raise ConfigurationError(f"Endpoint '{name}' is not defined", resource=container.name)
            endpoint = EndpointAnnotation(name=name)
            container.add_endpoint(endpoint)
        callback(endpoint)
        return self

    def with_image(self, image: str, tag: str = "latest") -> ResourceBuilder[R]:
        container = self._container()
        registry = container.image.registry if container.image else None
        container.image = ContainerImage(image=image, tag=tag, registry=registry)
        return self

    def with_image_registry(self, registry: str) -> ResourceBuilder[R]:
        container = self._container()
        if container.image is None:
            raise ConfigurationError("Set an image before its registry", resource=container.name)
        container.image = ContainerImage(
            image=container.image.image, tag=container.image.tag, registry=registry
        )
        return self

    def with_dockerfile(
        self, context_path: str, dockerfile_path: str | None = None
    ) -> ResourceBuilder[R]:
        """Build the image from a local Dockerfile rather than pulling it."""
        self._container().build = DockerfileBuild(context_path, dockerfile_path)
        return self

    def with_health_check(self, key: str) -> ResourceBuilder[R]:
        """Attach a registered health check to this resource (validated at build())."""
        container = self._container()
        if key not in container.health_check_keys:
            container.health_check_keys.append(key)
        return self


class DistributedApplicationBuilder:
    """
    Collects resource declarations.

    Owns the application-wide event bus and health check registry that
    resources register with while they are declared.
    """

    def __init__(self, settings: AppHostSettings | None = None):
        self.settings = settings or get_settings()
        self.eventing = EventBus()
        self.health_checks = HealthCheckRegistry(
            timeout_seconds=self.settings.health_check_timeout_seconds
        )
        self._resources: dict[str, Resource] = {}

    @property
    def resources(self) -> list[Resource]:
        return list(self._resources.values())

    def add_resource(self, resource: R) -> ResourceBuilder[R]:
        """
        Add a resource to the application graph.

        Raises:
            ConfigurationError: If a resource with the same name exists (case-insensitive)
        """
        self.ensure_name_available(resource.name, type(resource))
        self._resources[resource.name.lower()] = resource
        logger.info(f"[builder] Added resource | name={resource.name} | type={type(resource).__name__}")
        return ResourceBuilder(self, resource)

    def ensure_name_available(self, name: str, resource_type: type = Resource) -> None:
        """
        Check that a resource name is free, without changing the graph.

        Raises:
            ConfigurationError: If a resource with the same name exists (case-insensitive)
        """
        existing = self._resources.get(name.lower())
        if existing is not None:
            raise ConfigurationError(
                f"Cannot add resource of type '{resource_type.__name__}' with name "
                f"'{name}' because a resource of type "
                f"'{type(existing).__name__}' with that name already exists.",
                resource=name,
            )

    def build(self) -> DistributedApplication:
        """
        Validate the graph and create the application.

        Raises:
            ConfigurationError: If a resource references an unknown health check
        """
        for resource in self._resources.values():
            if isinstance(resource, ContainerResource):
                for key in resource.health_check_keys:
                    if key not in self.health_checks:
                        raise ConfigurationError(
                            f"Health check '{key}' is not registered", resource=resource.name
                        )
        logger.info(f"[builder] Built application | resources={len(self._resources)}")
        return DistributedApplication(self)


class DistributedApplication:
    """
    A built application graph.

    Scheduling and running containers is the runtime's job; the application
    receives readiness notifications from it and exposes health and the
    manifest.
    """

    def __init__(self, builder: DistributedApplicationBuilder):
        self.settings = builder.settings
        self.eventing = builder.eventing
        self.health_checks = builder.health_checks
        self._resources = {r.name.lower(): r for r in builder.resources}
        self._stopped = False

    @property
    def resources(self) -> list[Resource]:
        return list(self._resources.values())

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    def get_resource(self, name: str) -> Resource:
        try:
            return self._resources[name.lower()]
        except KeyError:
            raise ConfigurationError(f"Resource '{name}' is not declared") from None

    async def notify_resource_ready(
        self,
        name: str,
        *,
        host: str | None = None,
        ports: Mapping[str, int] | None = None,
    ) -> None:
        """
        Record that the runtime started a resource and publish readiness.

        Each endpoint is allocated on ``host`` (settings.default_host by
        default) with the port from ``ports``, else its published port,
        else its target port.

        Raises:
            ConfigurationError: If the resource is unknown or the application stopped
            ResolutionError: If the resource's connection string is empty
        """
        if self._stopped:
            raise ConfigurationError("Application has been stopped", resource=name)
        resource = self.get_resource(name)
        ports = ports or {}

        if isinstance(resource, ContainerResource):
            for endpoint in resource.endpoints.values():
                port = ports.get(endpoint.name, endpoint.port or endpoint.target_port)
                if port is None:
                    raise ConfigurationError(
                        f"Endpoint '{endpoint.name}' has no port to allocate", resource=name
                    )
                endpoint.allocated = AllocatedEndpoint(host or self.settings.default_host, port)
                logger.info(
                    f"[app] Endpoint allocated | resource={name} | endpoint={endpoint.name} | "
                    f"address={endpoint.allocated.address}"
                )

        await self.eventing.publish(ConnectionStringAvailableEvent(resource))

    async def check_health(self) -> list[HealthCheckResult]:
        return await self.health_checks.check_all()

    def manifest(self) -> dict[str, Any]:
        """Deployment manifest. Secrets appear only as parameter references."""
        return {"resources": {r.name: r.to_manifest() for r in self._resources.values()}}

    async def shutdown(self) -> None:
        """Stop the application; pending readiness subscriptions are abandoned."""
        if self._stopped:
            return
        self._stopped = True
        logger.info("[app] Shutting down")
        await self.eventing.publish(ApplicationStoppingEvent())

    async def __aenter__(self) -> DistributedApplication:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.shutdown()


__all__ = [
    "ResourceBuilder",
    "DistributedApplicationBuilder",
    "DistributedApplication",
]
