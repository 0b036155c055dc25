"""
Parcel / desi calculation

Derives the shippable parcel list of an order from the richest source available:
explicit package details on the payload, the catalog's parcel definitions times
the ordered quantity, or a single parcel carrying the order's declared desi.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from app.services.order_lines import order_quantity

logger = logging.getLogger(__name__)

# Upper bound on how many times a product's parcel set is replicated per order
MAX_PARCEL_REPLICATION = 500


@dataclass
class Parcel:
    """One physical package."""
    desi: float
    width: Optional[float] = None
    height: Optional[float] = None
    depth: Optional[float] = None
    weight: Optional[float] = None
    count: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "desi": self.desi,
            "width": self.width,
            "height": self.height,
            "depth": self.depth,
            "weight": self.weight,
            "count": self.count,
        }


@dataclass
class ParcelComputation:
    parcels: List[Parcel] = field(default_factory=list)
    total_desi: float = 0.0
    is_missing_info: bool = True


def _to_desi(value: Any) -> float:
    """Parse a desi value; unparseable or negative values count as 0."""
    try:
        desi = float(value)
    except (TypeError, ValueError):
        return 0.0
    if desi != desi or desi < 0:  # NaN or negative
        return 0.0
    return desi


def _optional_float(value: Any) -> Optional[float]:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _from_package_details(details: List[Any]) -> List[Parcel]:
    parcels = []
    for detail in details:
        if not isinstance(detail, dict):
            continue
        parcels.append(Parcel(
            desi=_to_desi(detail.get("desi")),
            width=_optional_float(detail.get("width")),
            height=_optional_float(detail.get("height")),
            depth=_optional_float(detail.get("depth")),
            weight=_optional_float(detail.get("weight")),
        ))
    return parcels


def _from_product(product, quantity: int) -> List[Parcel]:
    unit_parcels = [
        Parcel(
            desi=_to_desi(p.desi),
            width=p.width,
            height=p.height,
            depth=p.depth,
            weight=p.weight,
        )
        for p in product.parcels
    ]
    copies = max(quantity, 1)
    if copies > MAX_PARCEL_REPLICATION:
        logger.warning(f"Order quantity {copies} capped at {MAX_PARCEL_REPLICATION} parcel sets")
        copies = MAX_PARCEL_REPLICATION

    parcels: List[Parcel] = []
    for _ in range(copies):
        parcels.extend(Parcel(**vars(p)) for p in unit_parcels)
    return parcels


def _finish(parcels: List[Parcel]) -> ParcelComputation:
    total = sum(p.desi for p in parcels)
    return ParcelComputation(parcels=parcels, total_desi=total, is_missing_info=total == 0)


def calculate_parcels(order, product=None) -> ParcelComputation:
    """
    Compute the parcels and total desi of an order.

    Args:
        order: Order (reads raw_data, desi, product_count)
        product: Resolved catalog Product or None

    Returns:
        ParcelComputation; is_missing_info is set whenever total desi is zero
    """
    raw = order.raw_data or {}

    details = raw.get("package_details")
    # An empty list still counts as explicit (empty) packaging
    if isinstance(details, list):
        return _finish(_from_package_details(details))

    if product is not None and product.parcels:
        return _finish(_from_product(product, order_quantity(order)))

    declared = order.desi if order.desi is not None else raw.get("desi")
    return _finish([Parcel(desi=_to_desi(declared))])
