"""Start Redis and find the host port its service port was published on."""

import asyncio

from podman_fixtures import MatchLogOutput
from podman_fixtures.modules.generic import GenericImage

image = GenericImage("docker.io/library/redis", "7-alpine").with_task(
    MatchLogOutput.containing("Ready to accept connections")
)


async def main() -> None:
    async with await image.start_container() as c:
        # Every exposed port is published on a random free host port
        host_port = await c.host_port_for("6379")
        print(f"Redis accessible at redis://{c.host}:{host_port}")


asyncio.run(main())
