"""
Redis container resource.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from apphost.hosting.resource import ContainerResource, EndpointAnnotation, LaunchCommand

from .command import (
    NO_PERSISTENCE,
    PASSWORD_ENV_VAR,
    Persistence,
    PersistencePolicy,
    RedisLaunchOptions,
    assemble_command,
)
from .connection import DEFAULT_REDIS_PORT, format_connection_string

if TYPE_CHECKING:
    from apphost.hosting.parameters import ParameterResource
    from apphost.readiness import ReadinessCoordinator


class RedisResource(ContainerResource):
    """
    A Redis server running in a container.

    Attributes:
        password_parameter: Secret parameter holding the server password, if any
        config_file_path: Config file passed to redis-server, if any
        readiness: Coordinator tracking the connection string
    """

    PRIMARY_ENDPOINT_NAME = "tcp"

    def __init__(
        self,
        name: str,
        password_parameter: ParameterResource | None = None,
        *,
        config_file_path: str | None = None,
    ):
        super().__init__(name)
        self.password_parameter = password_parameter
        self.config_file_path = config_file_path
        self.readiness: ReadinessCoordinator | None = None

    @property
    def primary_endpoint(self) -> EndpointAnnotation:
        return self.get_endpoint(self.PRIMARY_ENDPOINT_NAME)

    @property
    def persistence(self) -> Persistence:
        return self.get_last_annotation(PersistencePolicy) or NO_PERSISTENCE

    def launch_options(self) -> RedisLaunchOptions:
        endpoint = self.endpoints.get(self.PRIMARY_ENDPOINT_NAME)
        return RedisLaunchOptions(
            name=self.name,
            port=endpoint.port if endpoint else None,
            target_port=(endpoint.target_port if endpoint and endpoint.target_port else DEFAULT_REDIS_PORT),
            config_file_path=self.config_file_path,
            credential=self.password_parameter,
            persistence=self.persistence,
        )

    def launch_command(self) -> LaunchCommand:
        return assemble_command(self.launch_options())

    def environment_expressions(self) -> dict[str, str]:
        if self.password_parameter is None:
            return {}
        return {PASSWORD_ENV_VAR: self.password_parameter.value_expression}

    @property
    def connection_string_expression(self) -> str:
        """Connection string with placeholders, for the manifest."""
        endpoint = f"{{{self.name}.bindings.{self.PRIMARY_ENDPOINT_NAME}"
        expression = f"{endpoint}.host}}:{endpoint}.port}}"
        if self.password_parameter is not None:
            expression += f",password={self.password_parameter.value_expression}"
        return expression

    async def get_connection_string(self) -> str | None:
        """
        Connection string for the running server.

        Raises:
            EndpointNotAllocatedError: If the runtime has not allocated the endpoint
        """
        allocated = self.primary_endpoint.require_allocated(self.name)
        password = None
        if self.password_parameter is not None:
            password = self.password_parameter.value.get_secret_value()
        return format_connection_string(allocated.host, allocated.port, password)

    def to_manifest(self) -> dict[str, Any]:
        manifest = super().to_manifest()
        manifest["connectionString"] = self.connection_string_expression
        return manifest


__all__ = ["RedisResource"]
