"""
In-memory tracked-entity storage.

Tracked entities are held by object reference under (type, key tuple). A
lookup that misses can fall through to an optional loader standing in for a
database query; loaded entities become tracked so later lookups hit memory.
"""
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Union

from entitykeys.core.cancellation import CancellationToken, ensure_token
from entitykeys.core.keys import KeyValues

Loader = Callable[[type, KeyValues], Union[Optional[Any], Awaitable[Optional[Any]]]]


class InMemoryEntityStorage:
    """
    Tracked-entity map keyed by entity type and key tuple.

    The type in each slot is the one the caller files the entity under.
    EntityContext passes the registered type owning the key definition, so
    subclass instances share their base's slots.
    """

    def __init__(self, loader: Optional[Loader] = None) -> None:
        self._logger = logging.getLogger("InMemoryEntityStorage")
        self._tracked: Dict[Tuple[type, KeyValues], Any] = {}
        self._loader = loader
        self._loader_calls = 0

    def track(self, entity: Any, key_values: KeyValues, entity_type: Optional[type] = None) -> Any:
        """
        Start tracking an entity under its key.

        Returns the already tracked instance if one exists for the key,
        otherwise the given entity.
        """
        entity_type = entity_type or type(entity)
        slot = (entity_type, tuple(key_values))
        existing = self._tracked.get(slot)
        if existing is not None:
            if existing is not entity:
                self._logger.debug(f"{entity_type.__name__}{slot[1]} already tracked, keeping existing instance")
            return existing
        self._tracked[slot] = entity
        self._logger.debug(f"Tracking {entity_type.__name__}{slot[1]}")
        return entity

    def untrack(self, entity_type: type, key_values: KeyValues) -> Optional[Any]:
        removed = self._tracked.pop((entity_type, tuple(key_values)), None)
        if removed is not None:
            self._logger.debug(f"Stopped tracking {entity_type.__name__}{tuple(key_values)}")
        return removed

    def is_tracked(self, entity_type: type, key_values: KeyValues) -> bool:
        return (entity_type, tuple(key_values)) in self._tracked

    async def find_by_key(
        self,
        entity_type: type,
        key_values: KeyValues,
        cancellation: Optional[CancellationToken] = None
    ) -> Optional[Any]:
        """
        Return the tracked entity for the key, loading it on a miss.

        Raises:
            OperationCancelledError: If cancellation is requested before the loader runs
        """
        slot = (entity_type, tuple(key_values))
        tracked = self._tracked.get(slot)
        if tracked is not None:
            self._logger.debug(f"Tracked hit for {entity_type.__name__}{slot[1]}")
            return tracked

        if self._loader is None:
            self._logger.debug(f"No tracked {entity_type.__name__}{slot[1]} and no loader")
            return None

        ensure_token(cancellation).raise_if_cancellation_requested()
        self._loader_calls += 1
        self._logger.debug(f"Loading {entity_type.__name__}{slot[1]}")
        loaded = self._loader(entity_type, slot[1])
        if inspect.isawaitable(loaded):
            loaded = await loaded
        if loaded is None:
            return None
        return self.track(loaded, slot[1], entity_type)

    @property
    def loader_calls(self) -> int:
        return self._loader_calls

    def clear(self) -> None:
        self._tracked.clear()
        self._loader_calls = 0

    def get_registry_status(self) -> Dict[str, Any]:
        """Get status information about the storage."""
        by_type: Dict[str, int] = {}
        for entity_type, _ in self._tracked:
            by_type[entity_type.__name__] = by_type.get(entity_type.__name__, 0) + 1
        return {
            "storage": "in_memory",
            "tracked_count": len(self._tracked),
            "tracked_by_type": by_type,
            "loader_calls": self._loader_calls,
            "has_loader": self._loader is not None
        }
