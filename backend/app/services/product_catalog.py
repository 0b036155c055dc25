"""
Product catalog lookup

Read-only access to master products and their parcel definitions. Order payloads
carry SKUs in whatever case the marketplace uses, so results are keyed by the
exact, lower-case and upper-case code.
"""
import logging
from typing import Dict, Iterable, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.product import Product

logger = logging.getLogger(__name__)


def lookup_product(products: Dict[str, Product], code: Optional[str]) -> Optional[Product]:
    """Find a product for a code: exact, then lower-case, then upper-case key."""
    if not code:
        return None
    return products.get(code) or products.get(code.lower()) or products.get(code.upper())


class ProductCatalog:
    """Catalog queries scoped to one tenant per call."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_codes(self, organization_id: str, codes: Iterable[str]) -> Dict[str, Product]:
        """
        Load products whose code matches any of the given codes, case-insensitively.

        Returns:
            Map from code variant (exact, lower, upper) to Product
        """
        wanted = sorted({code.lower() for code in codes if code})
        if not wanted:
            return {}

        result = await self.db.execute(
            select(Product).where(
                Product.organization_id == organization_id,
                func.lower(Product.code).in_(wanted),
            )
        )
        products = result.scalars().all()

        by_code: Dict[str, Product] = {}
        for product in products:
            by_code.setdefault(product.code, product)
            by_code.setdefault(product.code.lower(), product)
            by_code.setdefault(product.code.upper(), product)

        logger.debug(f"Catalog lookup: {len(wanted)} codes -> {len(products)} products")
        return by_code
