"""Shared configuration models for infrastructure components."""

from pydantic import BaseModel, computed_field


class MinioConfig(BaseModel, frozen=True):
    """MinIO connection configuration."""

    endpoint: str
    user: str
    password: str
    secure: bool = False
    connect_timeout_seconds: float = 2.0
    read_timeout_seconds: float = 5.0


class RedisConfig(BaseModel, frozen=True):
    """Redis connection configuration."""

    host: str
    port: int = 6379
    db: int = 0
    socket_timeout_seconds: float = 1.0


class PostgresConfig(BaseModel, frozen=True):
    """PostgreSQL connection configuration."""

    host: str
    user: str
    password: str
    port: int
    database: str

    @computed_field
    @property
    def url(self) -> str:
        """Returns the full PostgreSQL connection URL."""
        return (
            f"postgresql+psycopg://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.database}"
        )
