"""
Tests for label print state.
"""
from datetime import datetime, timezone

import pytest

from app.core.exceptions import AlreadyPrintedError
from app.services.print_guard import PrintGuard

from conftest import make_order


class TestCheck:

    def test_unprinted_batch_passes(self):
        PrintGuard.check([make_order(id=1), make_order(id=2, order_number="TY-2")])

    def test_printed_orders_conflict(self):
        orders = [
            make_order(id=1, order_number="TY-1", raw_data={"is_printed": True}),
            make_order(id=2, order_number="TY-2"),
            make_order(id=3, order_number="TY-3", raw_data={"is_printed": True}),
        ]

        with pytest.raises(AlreadyPrintedError) as exc_info:
            PrintGuard.check(orders)

        assert exc_info.value.order_numbers == ["TY-1", "TY-3"]
        assert exc_info.value.details["order_numbers"] == ["TY-1", "TY-3"]

    def test_force_skips_conflict(self):
        PrintGuard.check([make_order(raw_data={"is_printed": True})], force=True)


class TestNeedsTracking:

    def test_without_tracking_number(self):
        assert PrintGuard.needs_tracking(make_order()) is True

    def test_with_tracking_number(self):
        assert PrintGuard.needs_tracking(make_order(cargo_tracking_number="123")) is False


class TestCommit:

    @pytest.mark.asyncio
    async def test_single_bulk_write(self, mock_db):
        guard = PrintGuard(mock_db)
        orders = [
            make_order(id=1, raw_data={"lines": [{"sku": "A"}]}),
            make_order(id=2, order_number="TY-2"),
        ]
        now = datetime(2024, 5, 2, 9, 30, tzinfo=timezone.utc)

        printed_at = await guard.commit(orders, now=now)

        assert printed_at == now.isoformat()
        assert mock_db.execute.await_count == 1
        mock_db.commit.assert_awaited_once()

        values = mock_db.execute.await_args.args[1]
        assert [v["id"] for v in values] == [1, 2]
        assert values[0]["raw_data"] == {"lines": [{"sku": "A"}], "is_printed": True, "printed_at": now.isoformat()}

    @pytest.mark.asyncio
    async def test_orders_reflect_new_state(self, mock_db):
        guard = PrintGuard(mock_db)
        order = make_order()

        await guard.commit([order])

        assert order.is_printed is True
        assert "printed_at" in order.raw_data

    @pytest.mark.asyncio
    async def test_empty_batch_writes_nothing(self, mock_db):
        await PrintGuard(mock_db).commit([])
        mock_db.execute.assert_not_awaited()
