"""
entitykeys: resolve the tracked or persisted entity for an in-memory instance
by deriving its primary key values from schema metadata.
"""
from entitykeys.config import Settings, configure_logging
from entitykeys.core import (
    AttributeKeyProperty, CancellationToken, EntityKeysError, KeyDefinitionError,
    KeyLookupSource, KeyMetadataSource, KeyProperty, KeyValues, OperationCancelledError,
    UnknownEntityTypeError, extract_key_values, get_key_values, has_key, resolve_tracked
)

__all__ = [
    "Settings", "configure_logging",
    "AttributeKeyProperty", "CancellationToken", "EntityKeysError", "KeyDefinitionError",
    "KeyLookupSource", "KeyMetadataSource", "KeyProperty", "KeyValues", "OperationCancelledError",
    "UnknownEntityTypeError", "extract_key_values", "get_key_values", "has_key", "resolve_tracked",
]
