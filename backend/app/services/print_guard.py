"""
Print state of cargo labels

An order moves from unprinted to printed exactly once; printing again needs an
explicit force flag. The state lives in the order's raw_data bag.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from app.core.exceptions import AlreadyPrintedError
from app.models.order import Order

logger = logging.getLogger(__name__)


class PrintGuard:

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def check(orders: Sequence[Order], force: bool = False) -> None:
        """
        Raises:
            AlreadyPrintedError: some orders are printed and force is off
        """
        if force:
            return
        printed = [o.order_number for o in orders if o.is_printed]
        if printed:
            raise AlreadyPrintedError(order_numbers=printed)

    @staticmethod
    def needs_tracking(order: Order) -> bool:
        """Only orders without a tracking number go to the carrier, forced or not."""
        return not order.cargo_tracking_number

    async def commit(self, orders: Sequence[Order], now: Optional[datetime] = None) -> str:
        """
        Mark every order as printed in one bulk write.

        Returns:
            The printed_at timestamp written
        """
        if not orders:
            return ""

        printed_at = (now or datetime.now(timezone.utc)).isoformat()
        values: List[dict] = []
        for order in orders:
            values.append({
                "id": order.id,
                "raw_data": {**(order.raw_data or {}), "is_printed": True, "printed_at": printed_at},
            })

        await self.db.execute(update(Order), values)
        await self.db.commit()

        for order, row in zip(orders, values):
            set_committed_value(order, "raw_data", row["raw_data"])

        logger.info(f"Marked {len(values)} orders as printed")
        return printed_at
