"""
Tracked-entity lookups over SQLAlchemy sessions.

Session.get() is the find-by-key primitive: it returns the instance from the
session's identity map when the key is already tracked and only emits a
SELECT otherwise. Both Session and AsyncSession are supported.

Main components:
- SessionContext: KeyLookupSource over a Session or AsyncSession
- find_tracked: Lookup using the entity's own mapped class
- MappedSet: Lookup bound to one mapped class
- create_session_factory / create_async_session_factory: Engines from Settings
"""
import inspect
import logging
from typing import Any, Generic, Optional, Tuple, Type, TypeVar, Union

from sqlalchemy import create_engine, make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from entitykeys.config import Settings
from entitykeys.core.cancellation import CancellationToken, ensure_token
from entitykeys.core.keys import KeyProperty, KeyValues, resolve_tracked
from entitykeys.sql.metadata import MapperMetadataSource, default_metadata_source

T = TypeVar('T')
AnySession = Union[Session, AsyncSession]


class SessionContext:
    """Key metadata from the ORM mappers plus Session.get() for lookups."""

    def __init__(
        self,
        session: AnySession,
        metadata: Optional[MapperMetadataSource] = None
    ) -> None:
        self._logger = logging.getLogger("SessionContext")
        self.session = session
        self.metadata = metadata if metadata is not None else default_metadata_source

    def get_key_properties(self, entity_type: type) -> Tuple[KeyProperty, ...]:
        return self.metadata.get_key_properties(entity_type)

    async def find_by_key(
        self,
        entity_type: type,
        key_values: KeyValues,
        cancellation: Optional[CancellationToken] = None
    ) -> Optional[Any]:
        ensure_token(cancellation).raise_if_cancellation_requested()
        self._logger.debug(f"session.get({entity_type.__name__}, {key_values})")
        result = self.session.get(entity_type, key_values)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def find_tracked(
        self,
        entity: T,
        cancellation: Optional[CancellationToken] = None
    ) -> Optional[T]:
        return await resolve_tracked(self, entity, cancellation)

    def set(self, entity_type: Type[T]) -> "MappedSet[T]":
        return MappedSet(self.session, entity_type, self.metadata)


async def find_tracked(
    session: AnySession,
    entity: T,
    cancellation: Optional[CancellationToken] = None
) -> Optional[T]:
    """
    Return the entity in `session` (tracked or loaded) with the same primary key as `entity`.

    Args:
        session: Session or AsyncSession to look in
        entity: Instance of a mapped class carrying the key values
        cancellation: Checked before any work is done

    Returns:
        The session's instance for that key, or None if no row exists
    """
    return await SessionContext(session).find_tracked(entity, cancellation)


class MappedSet(Generic[T]):
    """
    Lookups for one mapped class in a session.

    Metadata comes from the set's class, so passing a subclass instance
    resolves the key with the base mapping.
    """

    def __init__(
        self,
        session: AnySession,
        entity_type: Type[T],
        metadata: Optional[MapperMetadataSource] = None
    ) -> None:
        self.entity_type = entity_type
        self._context = SessionContext(session, metadata)

    @property
    def session(self) -> AnySession:
        return self._context.session

    async def find_tracked(
        self,
        entity: T,
        cancellation: Optional[CancellationToken] = None
    ) -> Optional[T]:
        token = ensure_token(cancellation)
        token.raise_if_cancellation_requested()
        if entity is not None and not isinstance(entity, self.entity_type):
            raise TypeError(f"Expected {self.entity_type.__name__}, got {type(entity).__name__}")
        return await resolve_tracked(self._context, entity, token, entity_type=self.entity_type)

    def __repr__(self) -> str:
        return f"MappedSet({self.entity_type.__name__})"


def is_memory_database(url: str) -> bool:
    """Whether url points at an in-memory SQLite database (sqlite://, :memory:)."""
    parsed = make_url(url)
    return parsed.get_backend_name() == "sqlite" and parsed.database in (None, "", ":memory:")


def _engine_kwargs(url: str, settings: Settings) -> dict:
    kwargs: dict = {"echo": settings.echo_sql}
    if is_memory_database(url):
        # one shared connection so every session sees the same in-memory database
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}
    return kwargs


def create_session_factory(settings: Optional[Settings] = None) -> sessionmaker:
    """Engine and sessionmaker for settings.database_url."""
    settings = settings or Settings.from_env()
    engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url, settings))
    return sessionmaker(bind=engine, expire_on_commit=False)


def create_async_session_factory(settings: Optional[Settings] = None) -> async_sessionmaker:
    """Async engine and async_sessionmaker for settings.async_database_url."""
    settings = settings or Settings.from_env()
    url = settings.async_database_url
    engine = create_async_engine(url, **_engine_kwargs(url, settings))
    return async_sessionmaker(bind=engine, expire_on_commit=False)
