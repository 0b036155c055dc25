"""
Marketplace payload adapters

Marketplaces deliver line items under different keys (Trendyol "lines",
Hepsiburada "items", WooCommerce "line_items") with different field names for
the SKU. Everything downstream works on the canonical OrderLine / ShippingAddress
shapes produced here.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

# Tried in order, first non-empty array wins
LINE_ARRAY_KEYS: Tuple[str, ...] = ("lines", "items", "line_items")
SKU_KEYS: Tuple[str, ...] = ("merchantSku", "sku", "barcode", "productCode")
NAME_KEYS: Tuple[str, ...] = ("productName", "name")

ADDRESS_BLOCK_KEYS: Tuple[str, ...] = ("shipmentAddress", "shipping")

UNNAMED_PRODUCT = "Unnamed product"
# The carrier rejects shipments without a mobile number
PLACEHOLDER_PHONE = "5555555555"


@dataclass
class OrderLine:
    """Canonical line item."""
    sku: Optional[str]
    quantity: int
    product_name: Optional[str]


@dataclass
class ShippingAddress:
    """Canonical recipient address."""
    full_address: str = ""
    city: str = ""
    district: str = ""
    phone: str = ""


def _first_value(data: Dict[str, Any], keys: Tuple[str, ...]) -> Optional[str]:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return str(value)
    return None


def _to_quantity(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        # NaN and infinity from JSON payloads land here too
        return 1


def adapt_line(line: Dict[str, Any]) -> OrderLine:
    """Convert one marketplace line item into an OrderLine."""
    return OrderLine(
        sku=_first_value(line, SKU_KEYS),
        quantity=_to_quantity(line.get("quantity", 1)),
        product_name=_first_value(line, NAME_KEYS),
    )


def extract_lines(raw_data: Optional[Dict[str, Any]]) -> List[OrderLine]:
    """Return the order's line items in canonical form (empty when none)."""
    raw = raw_data or {}
    for key in LINE_ARRAY_KEYS:
        lines = raw.get(key)
        if isinstance(lines, list) and lines:
            return [adapt_line(line) for line in lines if isinstance(line, dict)]
    return []


def first_line(raw_data: Optional[Dict[str, Any]]) -> Optional[OrderLine]:
    lines = extract_lines(raw_data)
    return lines[0] if lines else None


def resolve_product_identity(order) -> Tuple[str, str]:
    """
    Candidate (product_code, product_name) of an order before the catalog join.

    Priority: explicit order fields, then the first line item. Missing values
    come back as empty strings; the catalog name and UNNAMED_PRODUCT are applied
    by the aggregator.
    """
    line = first_line(order.raw_data)

    code = order.product_code or (line.sku if line else None) or ""
    name = order.product_name or (line.product_name if line else None) or ""
    return code, name


def candidate_product_codes(order) -> List[str]:
    """All product codes an order may reference, used to prefetch catalog rows."""
    codes = []
    if order.product_code:
        codes.append(order.product_code)
    for line in extract_lines(order.raw_data):
        if line.sku and line.sku not in codes:
            codes.append(line.sku)
    return codes


def order_quantity(order) -> int:
    """Units ordered: explicit product_count, else first line quantity, else 1."""
    if order.product_count:
        return order.product_count
    line = first_line(order.raw_data)
    return line.quantity if line else 1


def extract_shipping_address(raw_data: Optional[Dict[str, Any]]) -> ShippingAddress:
    """Pick the recipient address from the marketplace payload."""
    raw = raw_data or {}
    block: Dict[str, Any] = {}
    for key in ADDRESS_BLOCK_KEYS:
        if isinstance(raw.get(key), dict) and raw[key]:
            block = raw[key]
            break

    billing = raw.get("billing") if isinstance(raw.get("billing"), dict) else {}

    return ShippingAddress(
        full_address=block.get("fullAddress") or block.get("address_1") or "",
        city=block.get("city") or "",
        district=block.get("district") or "",
        phone=block.get("phone") or billing.get("phone") or "",
    )
