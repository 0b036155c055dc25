"""
Tests for the cargo tables migration.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.database import Base
from app.migrations.cargo_tables import CARGO_TABLES, migrate_cargo_tables


@pytest.mark.asyncio
async def test_creates_cargo_tables_only():
    conn = MagicMock()
    conn.run_sync = AsyncMock()
    begin = MagicMock()
    begin.__aenter__ = AsyncMock(return_value=conn)
    begin.__aexit__ = AsyncMock(return_value=False)
    engine = MagicMock()
    engine.begin.return_value = begin

    await migrate_cargo_tables(engine)

    conn.run_sync.assert_awaited_once_with(Base.metadata.create_all, tables=CARGO_TABLES, checkfirst=True)
    assert [t.name for t in CARGO_TABLES] == [
        "orders", "master_products", "product_parcels", "cargo_connections", "cargo_shipments",
    ]
