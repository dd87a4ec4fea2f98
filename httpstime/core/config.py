from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from httpstime.core.errors import ConfigurationError

TIME_PATH = "/.well-known/time"
TIME_HEADER = "x-httpstime"


class Server(BaseSettings):
    """The time server settings."""

    host: str = "127.0.0.1"
    port: int = 8123
    uds: str | None = None
    tls_cert: Path | None = None
    tls_key: Path | None = None
    sessions: bool = True

    model_config = SettingsConfigDict(env_prefix="SERVER_", env_file=".env", extra="allow")

    def check(self) -> None:
        """Reject option combinations that cannot be served."""
        if (self.tls_cert is None) != (self.tls_key is None):
            raise ConfigurationError("--tls-cert and --tls-key must be given together")

        if self.uds and self.tls_cert:
            raise ConfigurationError("TLS is not supported on a unix socket")


class Client(BaseSettings):
    """The time client settings."""

    timeout: float = 5.0

    model_config = SettingsConfigDict(env_prefix="CLIENT_", env_file=".env", extra="allow")


class Settings(BaseSettings):
    """The app settings."""

    debug: bool = False
    log_dir: Path | None = None

    server: Server = Server()
    client: Client = Client()

    model_config = SettingsConfigDict(env_file=".env", extra="allow")


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance"""
    return Settings()


settings = get_settings()
