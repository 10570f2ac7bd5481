"""Container image coordinates for Redis."""


class RedisContainerImageTags:
    """Image, tag and registry used for Redis containers."""

    REGISTRY = "docker.io"
    IMAGE = "redis"
    TAG = "latest"
