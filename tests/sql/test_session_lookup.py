"""
Tests for tracked-entity lookups through SQLAlchemy sessions.

These tests verify that:
1. Key metadata follows the table's primary key constraint order
2. Tracked instances come back from the identity map without a query
3. Untracked rows are loaded with a single SELECT
4. Cancellation and metadata failures surface before any SQL is emitted
"""
import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import NoInspectionAvailable

from entitykeys.core import CancellationToken, OperationCancelledError, get_key_values
from entitykeys.sql import MappedSet, MapperMetadataSource, SessionContext, find_tracked
from sql_rows import CustomerRow, OrderRow

pytestmark = pytest.mark.sql


class TestMapperMetadata:

    def test_key_order_follows_constraint(self):
        props = MapperMetadataSource().get_key_properties(OrderRow)
        assert [p.name for p in props] == ["tenant_id", "order_id"]
        assert [c.name for c in inspect(OrderRow).primary_key] == ["tenant_id", "order_id"]

    def test_order_scenario(self):
        assert get_key_values(MapperMetadataSource(), OrderRow(order_id=42, tenant_id=7)) == (7, 42)

    def test_attribute_name_differs_from_column(self):
        props = MapperMetadataSource().get_key_properties(CustomerRow)
        assert [p.name for p in props] == ["code"]
        assert props[0].column.name == "customer_code"
        assert props[0].get_value(CustomerRow(code="C-1", name="Ada")) == "C-1"

    def test_properties_cached(self):
        source = MapperMetadataSource()
        assert source.get_key_properties(OrderRow) is source.get_key_properties(OrderRow)

    def test_unmapped_class(self):
        class NotMapped:
            pass
        with pytest.raises(NoInspectionAvailable):
            MapperMetadataSource().get_key_properties(NotMapped)


@pytest.mark.asyncio
class TestSessionLookup:

    async def test_tracked_instance_without_query(self, session, statements):
        tracked = OrderRow(order_id=42, tenant_id=7, total=12.5)
        session.add(tracked)
        session.flush()
        statements.clear()

        found = await find_tracked(session, OrderRow(order_id=42, tenant_id=7))

        assert found is tracked
        assert statements == []

    async def test_untracked_row_loaded(self, session_factory, statements):
        with session_factory() as writer:
            writer.add(OrderRow(order_id=1, tenant_id=2, total=3.0))
            writer.commit()

        with session_factory() as reader:
            statements.clear()
            found = await find_tracked(reader, OrderRow(order_id=1, tenant_id=2))
            assert found is not None
            assert (found.tenant_id, found.order_id, found.total) == (2, 1, 3.0)
            assert len(statements) == 1

            again = await find_tracked(reader, OrderRow(order_id=1, tenant_id=2))
            assert again is found
            assert len(statements) == 1

    async def test_not_found(self, session):
        assert await find_tracked(session, CustomerRow(code="missing", name="x")) is None

    async def test_reversed_key_does_not_match(self, session):
        session.add(OrderRow(order_id=42, tenant_id=7))
        session.flush()
        assert await find_tracked(session, OrderRow(order_id=7, tenant_id=42)) is None

    async def test_cancelled_emits_no_sql(self, session, statements):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelledError):
            await find_tracked(session, CustomerRow(code="C-1", name="x"), token)
        assert statements == []

    async def test_unmapped_entity(self, session):
        class NotMapped:
            pass
        with pytest.raises(NoInspectionAvailable):
            await find_tracked(session, NotMapped())

    async def test_session_context_reuses_metadata(self, session):
        metadata = MapperMetadataSource()
        context = SessionContext(session, metadata)
        customer = CustomerRow(code="C-9", name="Grace")
        session.add(customer)
        session.flush()
        assert await context.find_tracked(CustomerRow(code="C-9", name="lookup")) is customer
        assert context.set(CustomerRow).entity_type is CustomerRow


@pytest.mark.asyncio
class TestMappedSet:

    async def test_set_lookup(self, session):
        customer = CustomerRow(code="C-1", name="Ada")
        session.add(customer)
        session.flush()
        customers = MappedSet(session, CustomerRow)
        assert await customers.find_tracked(CustomerRow(code="C-1", name="lookup")) is customer
        assert customers.session is session

    async def test_set_rejects_other_types(self, session):
        with pytest.raises(TypeError):
            await MappedSet(session, CustomerRow).find_tracked(OrderRow(order_id=1, tenant_id=1))

    async def test_set_cancelled(self, session):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelledError):
            await MappedSet(session, OrderRow).find_tracked(OrderRow(order_id=1, tenant_id=1), token)
