"""
Entity context over the in-memory registry and storage.

EntityContext resolves key metadata from an entity's runtime type, while an
EntityCollection obtained from EntityContext.set() always uses the metadata of
the type it was created for.
"""
import logging
from typing import Any, Dict, Generic, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel

from entitykeys.core.cancellation import CancellationToken, ensure_token
from entitykeys.core.errors import KeyDefinitionError
from entitykeys.core.keys import KeyProperty, KeyValues, get_key_values, resolve_tracked
from entitykeys.memory.enregistry import EntityMetadataRegistry
from entitykeys.memory.storage import InMemoryEntityStorage

EntityType = TypeVar('EntityType', bound=BaseModel)


class EntityContext:
    """Pairs key metadata with tracked storage and exposes key-based lookups."""

    def __init__(
        self,
        registry: Optional[EntityMetadataRegistry] = None,
        storage: Optional[InMemoryEntityStorage] = None
    ) -> None:
        self._logger = logging.getLogger("EntityContext")
        self.registry = registry if registry is not None else EntityMetadataRegistry()
        self.storage = storage if storage is not None else InMemoryEntityStorage()

    # KeyLookupSource
    def get_key_properties(self, entity_type: type) -> Tuple[KeyProperty, ...]:
        return self.registry.get_key_properties(entity_type)

    async def find_by_key(
        self,
        entity_type: type,
        key_values: KeyValues,
        cancellation: CancellationToken
    ) -> Optional[Any]:
        # subclasses share the slot of the type that owns their key definition
        return await self.storage.find_by_key(self.registry.resolve_type(entity_type), key_values, cancellation)

    def attach(self, entity: EntityType, entity_type: Optional[type] = None) -> EntityType:
        """
        Track an entity under its key and return the tracked instance.

        The entity is filed under the registered type its key definition
        comes from, so a subclass instance and a base instance with the same
        key resolve to one tracked entity.

        Raises:
            KeyDefinitionError: If the entity's type has no key
        """
        entity_type = entity_type or type(entity)
        key_values = get_key_values(self, entity, entity_type)
        if key_values is None:
            self._logger.error(f"Cannot attach keyless {entity_type.__name__}")
            raise KeyDefinitionError(f"{entity_type.__name__} has no primary key and cannot be tracked")
        return self.storage.track(entity, key_values, self.registry.resolve_type(entity_type))

    def detach(self, entity: BaseModel) -> Optional[BaseModel]:
        entity_type = type(entity)
        key_values = get_key_values(self, entity, entity_type)
        if key_values is None:
            return None
        return self.storage.untrack(self.registry.resolve_type(entity_type), key_values)

    async def find_tracked(
        self,
        entity: EntityType,
        cancellation: Optional[CancellationToken] = None
    ) -> Optional[EntityType]:
        """Find the tracked entity sharing `entity`'s key, using its runtime type's metadata."""
        return await resolve_tracked(self, entity, cancellation)

    def set(self, entity_type: Type[EntityType]) -> "EntityCollection[EntityType]":
        return EntityCollection(self, entity_type)

    def get_registry_status(self) -> Dict[str, Any]:
        return {**self.registry.get_registry_status(), **self.storage.get_registry_status()}


class EntityCollection(Generic[EntityType]):
    """The entities of one type inside an EntityContext."""

    def __init__(self, context: EntityContext, entity_type: Type[EntityType]) -> None:
        self.context = context
        self.entity_type = entity_type

    def _check_type(self, entity: Any) -> None:
        if not isinstance(entity, self.entity_type):
            raise TypeError(
                f"Expected {self.entity_type.__name__}, got {type(entity).__name__}"
            )

    def attach(self, entity: EntityType) -> EntityType:
        self._check_type(entity)
        return self.context.attach(entity, self.entity_type)

    async def find_tracked(
        self,
        entity: EntityType,
        cancellation: Optional[CancellationToken] = None
    ) -> Optional[EntityType]:
        """Find the tracked entity sharing `entity`'s key, using this collection's type metadata."""
        token = ensure_token(cancellation)
        token.raise_if_cancellation_requested()
        if entity is not None:
            self._check_type(entity)
        return await resolve_tracked(self.context, entity, token, entity_type=self.entity_type)

    def __repr__(self) -> str:
        return f"EntityCollection({self.entity_type.__name__})"
