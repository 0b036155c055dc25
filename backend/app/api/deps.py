"""
API dependencies
"""
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import UnauthorizedError
from app.services.cargo_connections import CargoConnectionService
from app.services.cargo_label_service import CargoLabelService
from app.services.order_aggregator import OrderAggregator


async def get_organization_id(
    x_organization_id: Optional[str] = Header(None, alias="X-Organization-Id"),
) -> str:
    """Tenant resolved by the upstream auth layer."""
    organization_id = (x_organization_id or "").strip()
    if not organization_id:
        raise UnauthorizedError("Missing organization context")
    return organization_id


def get_order_aggregator(db: AsyncSession = Depends(get_db)) -> OrderAggregator:
    return OrderAggregator(db)


def get_cargo_label_service(db: AsyncSession = Depends(get_db)) -> CargoLabelService:
    return CargoLabelService(db)


def get_cargo_connection_service(db: AsyncSession = Depends(get_db)) -> CargoConnectionService:
    return CargoConnectionService(db)
