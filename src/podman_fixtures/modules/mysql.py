from __future__ import annotations

from ..container import DatabaseContainer
from ..image import Image
from ..settings import ImageSettings
from ..tasks import MatchLogOutput

__all__ = ["MySqlContainer", "MySqlImage"]

IMAGE_NAME = "mysql"
DEFAULT_TAG = "latest"

MYSQL_DATABASE = "MYSQL_DATABASE"
MYSQL_USER = "MYSQL_USER"
MYSQL_PASSWORD = "MYSQL_PASSWORD"
MYSQL_ALLOW_EMPTY_PASSWORD = "MYSQL_ALLOW_EMPTY_PASSWORD"


class MySqlContainer(DatabaseContainer):
    """MySQL server.

    Without ``MYSQL_USER`` the connection details fall back to ``root`` with
    an empty password, as allowed by ``MYSQL_ALLOW_EMPTY_PASSWORD``.
    """

    internal_service_port = "3306/tcp"

    def protocol(self) -> str:
        return "mysql"

    def username(self) -> str:
        return self.settings.env_value(MYSQL_USER, "root")

    def password(self) -> str:
        if self.settings.environment.get(MYSQL_USER) is None:
            return ""
        return self.settings.env_value(MYSQL_PASSWORD, "")

    def database(self) -> str:
        return self.settings.env_value(MYSQL_DATABASE, "mysql")

    async def jdbc_url(self) -> str:
        port = await self.service_port()
        return (
            f"jdbc:mysql://{self.host}:{port}/{self.database()}"
            f"?user={self.username()}&password={self.password()}"
        )

    async def connect_cli(self) -> str:
        port = await self.service_port()
        # "localhost" would make the mysql client use its unix socket
        return f"mysql -u {self.username()} -h 127.0.0.1 -P {port} {self.database()}"


class MySqlImage(Image[MySqlContainer]):
    container_type = MySqlContainer

    def __init__(self) -> None:
        super().__init__(
            ImageSettings(IMAGE_NAME, DEFAULT_TAG)
            .with_env_variable(MYSQL_ALLOW_EMPTY_PASSWORD, "yes")
            .with_task(MatchLogOutput.containing("/usr/sbin/mysqld: ready for connections"))
        )

    def with_database(self, database: str) -> MySqlImage:
        self.settings.set_env_variable(MYSQL_DATABASE, database)
        return self

    def with_username(self, username: str) -> MySqlImage:
        self.settings.set_env_variable(MYSQL_USER, username)
        return self

    def with_password(self, password: str) -> MySqlImage:
        self.settings.set_env_variable(MYSQL_PASSWORD, password)
        return self
