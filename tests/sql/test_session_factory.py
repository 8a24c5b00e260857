"""
Tests for building session factories from Settings.
"""
import pytest

from entitykeys.config import Settings
from entitykeys.sql import create_session_factory, find_tracked
from entitykeys.sql.session import is_memory_database
from sql_rows import Base, CustomerRow

pytestmark = pytest.mark.sql


@pytest.mark.asyncio
async def test_memory_factory_shares_database():
    factory = create_session_factory(Settings(database_url="sqlite:///:memory:"))
    Base.metadata.create_all(factory.kw["bind"])

    with factory() as writer:
        writer.add(CustomerRow(code="C-1", name="Ada"))
        writer.commit()

    with factory() as reader:
        found = await find_tracked(reader, CustomerRow(code="C-1", name="lookup"))
        assert found is not None
        assert found.name == "Ada"


@pytest.mark.asyncio
async def test_bare_sqlite_url_shares_database():
    factory = create_session_factory(Settings(database_url="sqlite://"))
    Base.metadata.create_all(factory.kw["bind"])

    with factory() as writer:
        writer.add(CustomerRow(code="C-2", name="Grace"))
        writer.commit()

    with factory() as reader:
        found = await find_tracked(reader, CustomerRow(code="C-2", name="lookup"))
        assert found is not None
        assert found.name == "Grace"


@pytest.mark.parametrize("url, expected", [
    ("sqlite://", True),
    ("sqlite:///:memory:", True),
    ("sqlite+aiosqlite:///:memory:", True),
    ("sqlite+aiosqlite://", True),
    ("sqlite:///orders.db", False),
    ("postgresql://user@localhost/orders", False),
])
def test_is_memory_database(url, expected):
    assert is_memory_database(url) is expected
