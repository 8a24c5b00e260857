"""
Fixtures for the in-memory persistence layer.
"""
import pytest

from entitykeys.memory import EntityContext, EntityMetadataRegistry, InMemoryEntityStorage
from memory_models import Customer, Order, Tag


@pytest.fixture
def registry():
    reg = EntityMetadataRegistry()
    reg.register_type(Order, key=("tenant_id", "order_id"))
    reg.register_type(Customer, key=("customer_id",))
    reg.register_type(Tag)
    return reg


@pytest.fixture
def storage():
    return InMemoryEntityStorage()


@pytest.fixture
def context(registry, storage):
    return EntityContext(registry, storage)
