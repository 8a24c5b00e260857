"""
SQLAlchemy adapter: mapper primary keys as key metadata and Session.get()
as the find-by-key primitive.
"""
from .metadata import MapperKeyProperty, MapperMetadataSource
from .session import (
    MappedSet, SessionContext, create_async_session_factory, create_session_factory, find_tracked
)

__all__ = [
    "MapperKeyProperty", "MapperMetadataSource",
    "MappedSet", "SessionContext", "create_async_session_factory", "create_session_factory", "find_tracked",
]
