"""
Key metadata for SQLAlchemy mapped classes.

The key order is the mapper's primary key order, which follows the table's
primary key constraint rather than attribute declaration order.
"""
import logging
from operator import attrgetter
from typing import Any, Dict, Tuple

from sqlalchemy import Column, inspect
from sqlalchemy.orm import Mapper

from entitykeys.core.keys import KeyProperty


class MapperKeyProperty:
    """Primary key column of a mapper, read through its mapped attribute."""
    __slots__ = ("name", "column", "_getter")

    def __init__(self, mapper: Mapper, column: Column) -> None:
        prop = mapper.get_property_by_column(column)
        self.name = prop.key
        self.column = column
        self._getter = attrgetter(prop.key)

    def get_value(self, entity: Any) -> Any:
        return self._getter(entity)

    def __repr__(self) -> str:
        return f"MapperKeyProperty({self.name!r}, column={self.column.name!r})"


class MapperMetadataSource:
    """
    KeyMetadataSource backed by sqlalchemy.inspect().

    Unmapped classes raise sqlalchemy.exc.NoInspectionAvailable from inspect().
    """

    def __init__(self) -> None:
        self._logger = logging.getLogger("MapperMetadataSource")
        self._cache: Dict[type, Tuple[KeyProperty, ...]] = {}

    def get_key_properties(self, entity_type: type) -> Tuple[KeyProperty, ...]:
        cached = self._cache.get(entity_type)
        if cached is not None:
            return cached
        mapper: Mapper = inspect(entity_type)
        props = tuple(MapperKeyProperty(mapper, column) for column in mapper.primary_key)
        self._cache[entity_type] = props
        self._logger.debug(f"Key of {entity_type.__name__}: {[p.name for p in props]}")
        return props


default_metadata_source = MapperMetadataSource()
