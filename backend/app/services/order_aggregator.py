"""
Order aggregation for the cargo screen

Lists a tenant's orders with filters and pagination and enriches each one with
its resolved product identity, catalog product and computed parcels. Read-only.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select, func, or_, false
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import UnauthorizedError
from app.models.order import Order
from app.models.product import Product
from app.services.order_lines import UNNAMED_PRODUCT, candidate_product_codes, resolve_product_identity
from app.services.parcel_calculator import ParcelComputation, calculate_parcels
from app.services.product_catalog import ProductCatalog, lookup_product

logger = logging.getLogger(__name__)

# Marketplace filter values meaning "every marketplace"
ALL_MARKETPLACES = ("Tümü", "all")
MIN_SEARCH_LENGTH = 3


@dataclass
class OrderFilters:
    """Listing filters; every field is optional."""
    status: Optional[str] = None  # comma separated
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    marketplace: Optional[str] = None
    search: Optional[str] = None
    printed: Optional[str] = None  # "true", "false", "all"
    page: int = 0
    page_size: int = field(default_factory=lambda: settings.CARGO_DEFAULT_PAGE_SIZE)

    @property
    def statuses(self) -> List[str]:
        if not self.status:
            return []
        return [s.strip() for s in self.status.split(",") if s.strip()]


@dataclass
class EnrichedOrder:
    """An order together with everything the cargo screen derives from it."""
    order: Order
    product: Optional[Product]
    product_code: str
    product_name: str
    computation: ParcelComputation

    @property
    def is_printed(self) -> bool:
        return self.order.is_printed


def _require_tenant(organization_id: Optional[str]) -> None:
    if not organization_id:
        raise UnauthorizedError("No organization context")


def _printed_flag():
    return func.coalesce(Order.raw_data["is_printed"].as_boolean(), false())


class OrderAggregator:
    """Builds the enriched order views used by the listing and the label batch."""

    def __init__(self, db: AsyncSession, catalog: Optional[ProductCatalog] = None):
        self.db = db
        self.catalog = catalog or ProductCatalog(db)

    def _apply_filters(self, query, filters: OrderFilters):
        if filters.statuses:
            query = query.where(Order.status.in_(filters.statuses))

        if filters.marketplace and filters.marketplace not in ALL_MARKETPLACES:
            query = query.where(Order.platform == filters.marketplace)

        if filters.printed == "true":
            query = query.where(_printed_flag().is_(True))
        elif filters.printed == "false":
            query = query.where(_printed_flag().is_(False))

        if filters.date_from:
            query = query.where(Order.order_date >= filters.date_from)
        if filters.date_to:
            query = query.where(Order.order_date <= filters.date_to)

        search = (filters.search or "").strip()
        if len(search) >= MIN_SEARCH_LENGTH:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    Order.order_number.ilike(pattern),
                    Order.customer_name.ilike(pattern),
                    Order.product_code.ilike(pattern),
                )
            )
        return query

    async def list_orders(
        self,
        organization_id: str,
        filters: Optional[OrderFilters] = None,
    ) -> Tuple[List[EnrichedOrder], int]:
        """
        One page of a tenant's orders, newest first.

        Returns:
            (enriched orders, total matching count)
        """
        _require_tenant(organization_id)
        filters = filters or OrderFilters()

        query = self._apply_filters(
            select(Order).where(Order.organization_id == organization_id),
            filters,
        )

        count_result = await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )
        total = count_result.scalar() or 0
        if total == 0:
            return [], 0

        page = max(filters.page, 0)
        page_size = filters.page_size if filters.page_size > 0 else settings.CARGO_DEFAULT_PAGE_SIZE

        result = await self.db.execute(
            query.order_by(Order.order_date.desc())
            .offset(page * page_size)
            .limit(page_size)
        )
        orders = result.scalars().all()

        return await self.enrich(organization_id, orders), total

    async def load_batch(self, organization_id: str, order_ids: Sequence[int]) -> List[EnrichedOrder]:
        """Load the selected orders of a label batch in the order they were requested."""
        _require_tenant(organization_id)
        if not order_ids:
            return []

        result = await self.db.execute(
            select(Order).where(
                Order.organization_id == organization_id,
                Order.id.in_(list(order_ids)),
            )
        )
        orders = result.scalars().all()

        position = {order_id: index for index, order_id in enumerate(order_ids)}
        orders = sorted(orders, key=lambda o: position.get(o.id, len(position)))

        return await self.enrich(organization_id, orders)

    async def enrich(self, organization_id: str, orders: Sequence[Order]) -> List[EnrichedOrder]:
        """Attach product identity, catalog product and parcels to each order."""
        codes: List[str] = []
        for order in orders:
            for code in candidate_product_codes(order):
                if code not in codes:
                    codes.append(code)

        products: Dict[str, Product] = {}
        if codes:
            products = await self.catalog.find_by_codes(organization_id, codes)

        enriched = []
        for order in orders:
            code, name = resolve_product_identity(order)
            product = lookup_product(products, code)
            if product is not None and not order.product_name:
                name = product.name or name

            enriched.append(EnrichedOrder(
                order=order,
                product=product,
                product_code=code,
                product_name=name or UNNAMED_PRODUCT,
                computation=calculate_parcels(order, product),
            ))
        return enriched
