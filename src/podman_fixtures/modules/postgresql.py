from __future__ import annotations

from ..container import DatabaseContainer
from ..image import Image
from ..settings import ImageSettings
from ..tasks import MatchLogOutput

__all__ = ["PostgresContainer", "PostgresImage"]

IMAGE_NAME = "postgres"
DEFAULT_TAG = "latest"

POSTGRES_DB = "POSTGRES_DB"
POSTGRES_USER = "POSTGRES_USER"
POSTGRES_PASSWORD = "POSTGRES_PASSWORD"
POSTGRES_HOST_AUTH_METHOD = "POSTGRES_HOST_AUTH_METHOD"


class PostgresContainer(DatabaseContainer):
    internal_service_port = "5432/tcp"

    def protocol(self) -> str:
        return "postgres"

    def username(self) -> str:
        return self.settings.env_value(POSTGRES_USER, "postgres")

    def password(self) -> str:
        return self.settings.env_value(POSTGRES_PASSWORD, "password")

    def database(self) -> str:
        return self.settings.env_value(POSTGRES_DB, "postgres")

    async def jdbc_url(self) -> str:
        port = await self.service_port()
        return (
            f"jdbc:postgresql://{self.host}:{port}/{self.database()}"
            f"?user={self.username()}&password={self.password()}"
        )

    async def connect_cli(self) -> str:
        port = await self.service_port()
        return f"psql -U {self.username()} -h {self.host} -p {port} {self.database()}"


class PostgresImage(Image[PostgresContainer]):
    """PostgreSQL with trust authentication until a password is set."""

    container_type = PostgresContainer

    def __init__(self) -> None:
        super().__init__(
            ImageSettings(IMAGE_NAME, DEFAULT_TAG)
            .with_cmd(["postgres"])
            .with_env_variable(POSTGRES_HOST_AUTH_METHOD, "trust")
            .with_task(
                MatchLogOutput.containing_in_order(
                    [
                        "PostgreSQL init process complete; ready for start up.",
                        "database system is ready to accept connections",
                    ]
                )
            )
        )

    def with_database(self, database: str) -> PostgresImage:
        self.settings.set_env_variable(POSTGRES_DB, database)
        return self

    def with_username(self, username: str) -> PostgresImage:
        self.settings.set_env_variable(POSTGRES_USER, username)
        return self

    def with_password(self, password: str) -> PostgresImage:
        self.settings.set_env_variable(POSTGRES_PASSWORD, password)
        # Bare key: the image falls back to its password authentication
        self.settings.set_env_variable(POSTGRES_HOST_AUTH_METHOD, None)
        return self
