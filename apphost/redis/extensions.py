"""
Declaring Redis resources.

Usage:
    builder = DistributedApplicationBuilder()

    cache = add_redis_v8(builder, "db", config_file_path="/etc/redis/redis-full.conf")
    cache.with_dockerfile("redis").configure_endpoint("tcp", lambda e: setattr(e, "port", 6379))

    sessions = add_redis_v8(builder, "sessions").with_persistence(timedelta(seconds=30), 5)
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from apphost.errors import ConfigurationError
from apphost.hosting.builder import ResourceBuilder
from apphost.hosting.parameters import create_default_password_parameter
from apphost.readiness import ReadinessCoordinator

from .command import PersistencePolicy
from .connection import DEFAULT_REDIS_PORT
from .health import RedisHealthCheck
from .images import RedisContainerImageTags
from .resource import RedisResource

if TYPE_CHECKING:
    from apphost.hosting.builder import DistributedApplicationBuilder
    from apphost.hosting.parameters import ParameterResource

logger = logging.getLogger(__name__)


class RedisResourceBuilder(ResourceBuilder[RedisResource]):
    """ResourceBuilder with Redis-specific options."""

    def with_persistence(
        self,
        interval: timedelta | None = None,
        keys_changed_threshold: int = 1,
    ) -> RedisResourceBuilder:
        """
        Snapshot the dataset periodically.

        Args:
            interval: Snapshot interval, 60 seconds if omitted
            keys_changed_threshold: Minimum number of changed keys

        Raises:
            ConfigurationError: If the interval or threshold is malformed
        """
        policy = PersistencePolicy(interval=interval, keys_changed_threshold=keys_changed_threshold)
        self.with_annotation(policy)
        logger.debug(
            f"[redis] Persistence enabled | resource={self.resource.name} | "
            f"interval={policy.interval_seconds}s | keys={policy.keys_changed_threshold}"
        )
        return self


def add_redis_v8(
    builder: DistributedApplicationBuilder,
    name: str,
    port: int | None = None,
    config_file_path: str | None = None,
    password: ResourceBuilder[ParameterResource] | ParameterResource | None = None,
) -> RedisResourceBuilder:
    """
    Declare a Redis server container.

    Wires up:
    - the ``tcp`` endpoint (container port 6379, published on ``port``)
    - the password, passed via REDIS_PASSWORD; a generated password
      parameter ``<name>-password`` is used when none is given
    - readiness: the connection string is resolved once the runtime
      publishes ConnectionStringAvailableEvent for this resource
    - the ``<name>_check`` health check, which fails closed until then

    Args:
        builder: Application builder
        name: Resource name, unique in the application
        port: Host port, or None to let the runtime choose
        config_file_path: Config file passed to redis-server
        password: Password parameter (or its builder)

    Returns:
        RedisResourceBuilder for further configuration

    Raises:
        ConfigurationError: If the builder or name is missing, or the name is taken
    """
    if builder is None:
        raise ConfigurationError("An application builder is required")

    redis = RedisResource(name, config_file_path=config_file_path)
    health_check_key = f"{redis.name}_check"
    password_name = f"{redis.name}-password"

    if isinstance(password, ResourceBuilder):
        password = password.resource

    # Check every name first so a rejected declaration registers nothing
    builder.ensure_name_available(redis.name, RedisResource)
    if password is None:
        builder.ensure_name_available(password_name)
    if health_check_key in builder.health_checks:
        raise ConfigurationError(
            f"Health check '{health_check_key}' is already registered", resource=redis.name
        )

    resource_builder = builder.add_resource(redis)
    # Redis clients can't take commas in the password, so no special characters
    redis.password_parameter = password or create_default_password_parameter(
        builder, password_name, special=False
    )

    coordinator = ReadinessCoordinator(redis)
    coordinator.attach(builder.eventing)
    redis.readiness = coordinator

    builder.health_checks.add(
        health_check_key,
        RedisHealthCheck(coordinator.require_connection_string),
        tags=("redis",),
    )

    logger.info(
        f"[redis] Declared | resource={name} | port={port} | config_file={config_file_path}"
    )

    return (
        RedisResourceBuilder(builder, resource_builder.resource)
        .with_endpoint(port=port, target_port=DEFAULT_REDIS_PORT, name=RedisResource.PRIMARY_ENDPOINT_NAME)
        .with_image(RedisContainerImageTags.IMAGE, RedisContainerImageTags.TAG)
        .with_image_registry(RedisContainerImageTags.REGISTRY)
        .with_health_check(health_check_key)
    )


__all__ = [
    "RedisResourceBuilder",
    "add_redis_v8",
]
