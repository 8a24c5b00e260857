"""
Exception types raised by entitykeys.

Failures coming from a metadata source or a find-by-key primitive are never
wrapped in these; they propagate as raised by the collaborator.
"""


class EntityKeysError(Exception):
    """Base class for errors raised by this package."""


class KeyDefinitionError(EntityKeysError, ValueError):
    """Raised when a key declaration is invalid or an entity type has no key where one is required."""


class UnknownEntityTypeError(EntityKeysError, KeyError):
    """Raised by the in-memory metadata registry for types it has never seen."""

    def __init__(self, entity_type: type) -> None:
        self.entity_type = entity_type
        super().__init__(f"Entity type {entity_type.__name__} is not registered")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]
