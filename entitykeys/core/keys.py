"""
Key extraction and tracked-entity resolution.

This module turns an entity instance into the ordered tuple of its primary key
values, using key metadata supplied by a persistence layer, and hands that
tuple to the layer's find-by-key primitive.

Main components:
- KeyProperty: Protocol for one key column with a value getter
- KeyMetadataSource / KeyLookupSource: Protocols the persistence layer implements
- extract_key_values: Ordered key tuple from metadata and an instance
- resolve_tracked: Find the tracked or stored entity matching an instance's key

The key order always comes from the metadata, never from the way the caller's
object declares or assigns its attributes.
"""
import inspect
import logging
from operator import attrgetter
from typing import Any, Optional, Protocol, Sequence, Tuple, TypeAlias, TypeVar, runtime_checkable

from entitykeys.core.cancellation import CancellationToken, ensure_token

KeyValues: TypeAlias = Tuple[Any, ...]

T = TypeVar('T')

logger = logging.getLogger("KeyExtractor")


@runtime_checkable
class KeyProperty(Protocol):
    """One column of a primary key definition"""
    name: str

    def get_value(self, entity: Any) -> Any: ...


@runtime_checkable
class KeyMetadataSource(Protocol):
    """Yields the ordered key properties of an entity type, or None for keyless types"""
    def get_key_properties(self, entity_type: type) -> Optional[Sequence[KeyProperty]]: ...


@runtime_checkable
class KeyLookupSource(KeyMetadataSource, Protocol):
    """Metadata source that can also look entities up by key. find_by_key may be async."""
    def find_by_key(
        self,
        entity_type: type,
        key_values: KeyValues,
        cancellation: CancellationToken
    ) -> Any: ...


class AttributeKeyProperty:
    """Key property read from a plain attribute of the instance."""
    __slots__ = ("name", "_getter")

    def __init__(self, name: str) -> None:
        self.name = name
        self._getter = attrgetter(name)

    def get_value(self, entity: Any) -> Any:
        return self._getter(entity)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, AttributeKeyProperty) and other.name == self.name

    def __hash__(self) -> int:
        return hash((AttributeKeyProperty, self.name))

    def __repr__(self) -> str:
        return f"AttributeKeyProperty({self.name!r})"


def extract_key_values(key_properties: Sequence[KeyProperty], entity: Any) -> KeyValues:
    """
    Read the key values off an entity in declared key order.

    Args:
        key_properties: Ordered key properties of the entity's type
        entity: Instance to read from; it is not modified

    Returns:
        Tuple where element i is the value of key_properties[i] on entity
    """
    return tuple(prop.get_value(entity) for prop in key_properties)


def get_key_values(
    source: KeyMetadataSource,
    entity: Any,
    entity_type: Optional[type] = None
) -> Optional[KeyValues]:
    """
    Resolve key metadata for the entity's type and extract its key values.

    Returns None when the type declares no key. Errors raised by the
    metadata source for unknown types propagate.
    """
    entity_type = entity_type or type(entity)
    key_properties = source.get_key_properties(entity_type)
    if not key_properties:
        logger.debug(f"{entity_type.__name__} has no primary key")
        return None
    return extract_key_values(key_properties, entity)


def has_key(source: KeyMetadataSource, entity_type: type) -> bool:
    """Whether entity_type declares a primary key in the given metadata source."""
    return bool(source.get_key_properties(entity_type))


async def resolve_tracked(
    source: KeyLookupSource,
    entity: T,
    cancellation: Optional[CancellationToken] = None,
    entity_type: Optional[type] = None
) -> Optional[T]:
    """
    Find the tracked or persisted entity with the same primary key as `entity`.

    Args:
        source: Persistence layer providing key metadata and find_by_key
        entity: Populated instance whose key values identify the target
        cancellation: Checked once before any work is done
        entity_type: Type whose metadata to use, defaults to type(entity)

    Returns:
        The matching entity, or None if the type has no key or nothing matches

    Raises:
        OperationCancelledError: If cancellation was already requested
        ValueError: If entity is None
    """
    token = ensure_token(cancellation)
    token.raise_if_cancellation_requested()

    if entity is None:
        raise ValueError("Entity must not be None")

    entity_type = entity_type or type(entity)
    key_values = get_key_values(source, entity, entity_type)
    if key_values is None:
        return None

    logger.debug(f"Looking up {entity_type.__name__} by key {key_values}")
    result = source.find_by_key(entity_type, key_values, token)
    if inspect.isawaitable(result):
        result = await result
    return result
