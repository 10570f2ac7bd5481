"""
Redis support for the application host.

- add_redis_v8: declare a Redis container with password, persistence,
  readiness and health checking
- assemble_command: the launch command for a set of Redis facets
- RedisHealthCheck: PING-based health probe
"""

from .command import (
    NO_PERSISTENCE,
    NoPersistence,
    Persistence,
    PersistencePolicy,
    RedisLaunchOptions,
    assemble_command,
)
from .connection import RedisConnectionOptions, format_connection_string, parse_connection_string
from .extensions import RedisResourceBuilder, add_redis_v8
from .health import RedisHealthCheck
from .images import RedisContainerImageTags
from .resource import RedisResource

__all__ = [
    # Declaration
    "add_redis_v8",
    "RedisResourceBuilder",
    "RedisResource",
    "RedisContainerImageTags",
    # Command assembly
    "assemble_command",
    "RedisLaunchOptions",
    "Persistence",
    "PersistencePolicy",
    "NoPersistence",
    "NO_PERSISTENCE",
    # Connections and health
    "RedisConnectionOptions",
    "format_connection_string",
    "parse_connection_string",
    "RedisHealthCheck",
]
