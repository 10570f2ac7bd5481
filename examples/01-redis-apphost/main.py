"""
Redis App Host Example

This example declares a Redis server the way a real app host would:
1. Add Redis with a custom config file
2. Build the image from a local Dockerfile
3. Pin the tcp endpoint to port 6379
4. Serve health and the manifest over HTTP

Run: python -m examples.01-redis-apphost.main
"""

import uvicorn

from apphost import DistributedApplicationBuilder
from apphost.app.main import create_app
from apphost.hosting import EndpointAnnotation
from apphost.redis import add_redis_v8


def pin_port(endpoint: EndpointAnnotation) -> None:
    endpoint.port = 6379
    endpoint.target_port = 6379


def build_application():
    builder = DistributedApplicationBuilder()

    (
        add_redis_v8(builder, "db", config_file_path="/etc/redis/redis-full.conf")
        .with_dockerfile("redis")
        .configure_endpoint("tcp", pin_port)
    )

    return builder.build()


def main() -> None:
    application = build_application()

    command = application.get_resource("db").launch_command()
    print(f"Launch: {command.entrypoint} -c \"{command.command_line}\"")

    uvicorn.run(create_app(application), host="127.0.0.1", port=8000)


if __name__ == "__main__":
    main()
