"""Basic usage: start a container, wait for its output, run a command, remove it."""

import asyncio

from podman_fixtures import Execute, MatchLogOutput
from podman_fixtures.modules.generic import GenericImage

image = (
    GenericImage("docker.io/library/alpine", "3.20")
    .with_cmd(["sh", "-c", "echo booted; exec sleep infinity"])
    .with_task(MatchLogOutput.containing("booted"))
)


async def main() -> None:
    async with await image.start_container() as c:
        print(f"Container ID: {c.id}")

        status = await c.execute(Execute(["echo", "Hello from podman-fixtures!"]))
        print(f"Exec status: {status}")


asyncio.run(main())
