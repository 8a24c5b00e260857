"""
Environment-driven settings and logging setup.

Values are read from the process environment after loading a local .env file.
"""
import logging
import os
import sys
from typing import Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class Settings(BaseModel):
    """Runtime settings for entitykeys."""
    database_url: str = Field(default="sqlite:///:memory:", description="SQLAlchemy URL for synchronous sessions")
    async_database_url: str = Field(default="sqlite+aiosqlite:///:memory:", description="SQLAlchemy URL for async sessions")
    log_level: str = Field(default="INFO", description="Level for the entitykeys loggers")
    echo_sql: bool = Field(default=False, description="Echo emitted SQL through the engine logger")

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        load_dotenv(dotenv_path)
        return cls(
            database_url=os.getenv("ENTITYKEYS_DATABASE_URL", "sqlite:///:memory:"),
            async_database_url=os.getenv("ENTITYKEYS_ASYNC_DATABASE_URL", "sqlite+aiosqlite:///:memory:"),
            log_level=os.getenv("ENTITYKEYS_LOG_LEVEL", "INFO").upper(),
            echo_sql=os.getenv("ENTITYKEYS_ECHO_SQL", "false").lower() in ("1", "true", "yes"),
        )


LOGGER_NAMES = ("KeyExtractor", "EntityMetadataRegistry", "InMemoryEntityStorage", "EntityContext", "MapperMetadataSource", "SessionContext")

_handler: Optional[logging.Handler] = None


def configure_logging(settings: Optional[Settings] = None, level: Optional[Union[int, str]] = None) -> None:
    """Attach a stream handler to the entitykeys loggers and set their level."""
    global _handler
    settings = settings or Settings.from_env()
    level = level if level is not None else settings.log_level

    if _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        if _handler not in logger.handlers:
            logger.addHandler(_handler)
        logger.setLevel(level)
