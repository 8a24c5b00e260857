"""
Example usage of entitykeys illustrating:
 - Composite keys resolved in key order, not attribute order
 - Tracked instances returned from the session identity map
 - The same lookup against the in-memory entity context
 - Keyless types resolving to None
"""
import asyncio

from pydantic import BaseModel
from sqlalchemy import Integer, PrimaryKeyConstraint, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from entitykeys import CancellationToken, Settings, configure_logging
from entitykeys.memory import EntityContext
from entitykeys.sql import MappedSet, create_session_factory, find_tracked


class Base(DeclarativeBase):
    pass


class OrderSQL(Base):
    __tablename__ = "orders"

    order_id: Mapped[int] = mapped_column(Integer)
    tenant_id: Mapped[int] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(String(20), default="open")

    __table_args__ = (PrimaryKeyConstraint("tenant_id", "order_id"),)


class Order(BaseModel):
    order_id: int
    tenant_id: int
    status: str = "open"


class Tag(BaseModel):
    label: str


async def sql_demo(settings: Settings) -> None:
    factory = create_session_factory(settings)
    Base.metadata.create_all(factory.kw["bind"])

    with factory() as session:
        stored = OrderSQL(order_id=42, tenant_id=7, status="shipped")
        session.add(stored)
        session.flush()

        # Built with the attributes in the "wrong" order on purpose
        lookup = OrderSQL(order_id=42, tenant_id=7)
        found = await find_tracked(session, lookup, CancellationToken())
        assert found is stored
        print(f"SQL: found tracked order with status {found.status!r}")

        found_via_set = await MappedSet(session, OrderSQL).find_tracked(lookup)
        assert found_via_set is stored


async def memory_demo() -> None:
    context = EntityContext()
    context.registry.register_type(Order, key=("tenant_id", "order_id"))
    context.registry.register_type(Tag)

    tracked = context.attach(Order(order_id=42, tenant_id=7, status="shipped"))
    found = await context.find_tracked(Order(order_id=42, tenant_id=7))
    assert found is tracked
    print(f"Memory: found tracked order with status {found.status!r}")

    print(f"Memory: keyless Tag resolves to {await context.find_tracked(Tag(label='red'))}")
    print(f"Memory status: {context.get_registry_status()}")


async def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings)
    await sql_demo(settings)
    await memory_demo()


if __name__ == "__main__":
    asyncio.run(main())
