"""Start PostgreSQL with custom credentials and print the ways to connect."""

import asyncio

from podman_fixtures.modules.postgresql import PostgresImage

image = PostgresImage().with_database("app").with_username("alice").with_password("s3cret")


async def main() -> None:
    # Set PODMAN_FIXTURES_DROP_ACTION=retain to keep the container for inspection
    async with await image.start_container() as postgres:
        print(f"URL:  {await postgres.connect_url()}")
        print(f"JDBC: {await postgres.jdbc_url()}")
        print(f"CLI:  {await postgres.connect_cli()}")


asyncio.run(main())
