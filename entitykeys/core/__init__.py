"""
Key extraction core.

Derives ordered primary key tuples from key metadata and resolves tracked
entities through a persistence layer's find-by-key primitive.
"""
from .cancellation import CancellationToken, OperationCancelledError, ensure_token
from .errors import EntityKeysError, KeyDefinitionError, UnknownEntityTypeError
from .keys import (
    AttributeKeyProperty, KeyLookupSource, KeyMetadataSource, KeyProperty, KeyValues,
    extract_key_values, get_key_values, has_key, resolve_tracked
)

__all__ = [
    "CancellationToken", "OperationCancelledError", "ensure_token",
    "EntityKeysError", "KeyDefinitionError", "UnknownEntityTypeError",
    "AttributeKeyProperty", "KeyLookupSource", "KeyMetadataSource", "KeyProperty", "KeyValues",
    "extract_key_values", "get_key_values", "has_key", "resolve_tracked",
]
