"""
In-memory persistence layer: key metadata for Pydantic models and a
tracked-entity store with an optional loader for misses.
"""
from .context import EntityCollection, EntityContext
from .enregistry import EntityMetadataRegistry, keyed, register_many
from .storage import InMemoryEntityStorage

__all__ = [
    "EntityCollection", "EntityContext",
    "EntityMetadataRegistry", "keyed", "register_many",
    "InMemoryEntityStorage",
]
