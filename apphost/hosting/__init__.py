"""
Application hosting primitives.

- Resources, endpoints and launch commands
- Parameters (externally supplied values and secrets)
- Application-wide eventing
- The application builder and the built application
"""

from .builder import DistributedApplication, DistributedApplicationBuilder, ResourceBuilder
from .eventing import (
    ApplicationStoppingEvent,
    ConnectionStringAvailableEvent,
    DistributedApplicationEvent,
    EventBus,
    EventSubscription,
    ResourceEvent,
)
from .parameters import (
    GenerateParameterDefault,
    ParameterResource,
    add_parameter,
    create_default_password_parameter,
)
from .resource import (
    AllocatedEndpoint,
    ContainerImage,
    ContainerResource,
    DockerfileBuild,
    EndpointAnnotation,
    LaunchCommand,
    Resource,
    validate_resource_name,
)

__all__ = [
    # Builder
    "DistributedApplication",
    "DistributedApplicationBuilder",
    "ResourceBuilder",
    # Eventing
    "ApplicationStoppingEvent",
    "ConnectionStringAvailableEvent",
    "DistributedApplicationEvent",
    "EventBus",
    "EventSubscription",
    "ResourceEvent",
    # Parameters
    "GenerateParameterDefault",
    "ParameterResource",
    "add_parameter",
    "create_default_password_parameter",
    # Resources
    "AllocatedEndpoint",
    "ContainerImage",
    "ContainerResource",
    "DockerfileBuild",
    "EndpointAnnotation",
    "LaunchCommand",
    "Resource",
    "validate_resource_name",
]
