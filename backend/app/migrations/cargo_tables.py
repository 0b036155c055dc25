"""
Database migration for the cargo pipeline

Creates orders, master_products, product_parcels, cargo_connections and
cargo_shipments from the SQLAlchemy models. Idempotent: existing tables are
left untouched.

    python -m app.migrations.cargo_tables
"""
import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.database import Base, engine
from app.models import Order, Product, ProductParcel, CargoConnection, CargoShipment

logger = logging.getLogger(__name__)

CARGO_TABLES = [
    Order.__table__,
    Product.__table__,
    ProductParcel.__table__,
    CargoConnection.__table__,
    CargoShipment.__table__,
]


async def migrate_cargo_tables(target: AsyncEngine = engine) -> None:
    """Create the cargo tables that do not exist yet."""
    logger.info("Starting cargo tables migration...")

    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, tables=CARGO_TABLES, checkfirst=True)

    logger.info(f"Cargo tables migration complete ({len(CARGO_TABLES)} tables checked)")


async def main():
    try:
        await migrate_cargo_tables()
    finally:
        await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
