"""
Registry of primary key definitions for Pydantic entity types.

Each registered type maps to an ordered tuple of key properties. The order is
the one given at registration and is what every key tuple produced for the
type follows, regardless of field declaration order on the model.

Main components:
- EntityMetadataRegistry: Type -> ordered key properties, with MRO fallback
- keyed: Class decorator registering a model in a registry
"""
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel

from entitykeys.core.errors import KeyDefinitionError, UnknownEntityTypeError
from entitykeys.core.keys import AttributeKeyProperty, KeyProperty

EntityType = TypeVar('EntityType', bound=BaseModel)


class EntityMetadataRegistry:
    """
    Key metadata for Pydantic models.

    A type registered with an empty key is known but keyless. Looking up a
    subclass of a registered type resolves to the nearest registered base.
    """

    def __init__(self) -> None:
        self._logger = logging.getLogger("EntityMetadataRegistry")
        self._keys: Dict[type, Tuple[KeyProperty, ...]] = {}

    def register_type(
        self,
        entity_type: Type[EntityType],
        key: Optional[Sequence[str]] = None
    ) -> Type[EntityType]:
        """
        Register an entity type and its ordered key field names.

        Args:
            entity_type: Pydantic model class
            key: Field names forming the primary key, in key order. None or
                empty registers the type without a key.

        Returns:
            The entity type, so this can be used from a decorator

        Raises:
            KeyDefinitionError: If the type is not a Pydantic model, the key
                names repeat, or a name is not a model field
        """
        if not (isinstance(entity_type, type) and issubclass(entity_type, BaseModel)):
            self._logger.error(f"Invalid entity type {entity_type!r}")
            raise KeyDefinitionError("Entity type must be a Pydantic model class")

        names = tuple(key or ())
        if len(set(names)) != len(names):
            self._logger.error(f"Duplicate key fields for {entity_type.__name__}: {names}")
            raise KeyDefinitionError(f"Key fields of {entity_type.__name__} must be unique, got {names}")

        missing = [name for name in names if name not in entity_type.model_fields]
        if missing:
            self._logger.error(f"Unknown key fields for {entity_type.__name__}: {missing}")
            raise KeyDefinitionError(
                f"{entity_type.__name__} has no field(s) {', '.join(missing)}"
            )

        if entity_type in self._keys:
            self._logger.info(f"Replacing key definition of {entity_type.__name__}")
        self._keys[entity_type] = tuple(AttributeKeyProperty(name) for name in names)
        self._logger.info(f"Registered {entity_type.__name__} with key {names or 'none'}")
        return entity_type

    def _resolve(self, entity_type: type) -> Optional[type]:
        for candidate in entity_type.__mro__:
            if candidate in self._keys:
                return candidate
        return None

    def resolve_type(self, entity_type: type) -> type:
        """
        The registered type whose key definition applies to entity_type:
        the type itself or its nearest registered base.

        Raises:
            UnknownEntityTypeError: If neither the type nor a base is registered
        """
        registered = self._resolve(entity_type)
        if registered is None:
            self._logger.error(f"No key metadata for {entity_type.__name__}")
            raise UnknownEntityTypeError(entity_type)
        return registered

    def get_key_properties(self, entity_type: type) -> Tuple[KeyProperty, ...]:
        """
        Ordered key properties of entity_type (empty for keyless types).

        Raises:
            UnknownEntityTypeError: If neither the type nor a base is registered
        """
        return self._keys[self.resolve_type(entity_type)]

    def get_key_names(self, entity_type: type) -> Tuple[str, ...]:
        return tuple(prop.name for prop in self.get_key_properties(entity_type))

    def is_registered(self, entity_type: type) -> bool:
        return self._resolve(entity_type) is not None

    def registered_types(self) -> List[type]:
        return list(self._keys)

    def unregister(self, entity_type: type) -> None:
        if self._keys.pop(entity_type, None) is not None:
            self._logger.info(f"Unregistered {entity_type.__name__}")

    def clear(self) -> None:
        self._keys.clear()
        self._logger.info("Cleared key metadata")

    def get_registry_status(self) -> Dict[str, Any]:
        """Get detailed status of the registry."""
        keyless = [t.__name__ for t, props in self._keys.items() if not props]
        return {
            "registered_types": len(self._keys),
            "keyless_types": keyless,
            "keys_by_type": {
                t.__name__: [prop.name for prop in props]
                for t, props in self._keys.items()
            }
        }


def keyed(
    registry: EntityMetadataRegistry,
    *key: str
) -> Callable[[Type[EntityType]], Type[EntityType]]:
    """
    Class decorator registering a Pydantic model in `registry` with the given key.

    ```python
    @keyed(registry, "tenant_id", "order_id")
    class Order(BaseModel):
        order_id: int
        tenant_id: int
    ```
    """
    def decorator(entity_type: Type[EntityType]) -> Type[EntityType]:
        return registry.register_type(entity_type, key)
    return decorator


def register_many(
    registry: EntityMetadataRegistry,
    definitions: Iterable[Tuple[type, Sequence[str]]]
) -> None:
    """Register several (type, key) pairs."""
    for entity_type, key in definitions:
        registry.register_type(entity_type, key)
