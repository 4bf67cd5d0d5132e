"""Start asynchronously, then let a plain ``with`` block tear the container down."""

import asyncio

from podman_fixtures import DropAction, MatchLogOutput
from podman_fixtures.modules.generic import GenericImage

image = (
    GenericImage("docker.io/library/alpine", "3.20")
    .with_cmd(["sh", "-c", "echo booted; exec sleep infinity"])
    .with_task(MatchLogOutput.containing("booted", timeout=60))
)

container = asyncio.run(image.start_container()).with_drop_action(DropAction.REMOVE)

with container as c:
    print(c)

# Removal ran on a worker thread before the block exited
print(c)
