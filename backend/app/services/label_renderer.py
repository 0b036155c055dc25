"""
Cargo label rendering

Produces one printable HTML document with an A6 page per order. Barcodes are
rendered server-side as inline Code128 SVG.
"""
import logging
from dataclasses import asdict, dataclass
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup
from reportlab.graphics import renderSVG
from reportlab.graphics.barcode import createBarcodeDrawing
from reportlab.lib.units import mm

from app.core.config import settings
from app.services.order_lines import extract_shipping_address

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
LABEL_TEMPLATE = "cargo_labels.html"

MISSING_PRODUCT_CODE = "NO_CODE"

BARCODE_OPTIONS = {
    "barWidth": 0.33 * mm,
    "barHeight": 15 * mm,
    "humanReadable": True,
    "quiet": True,
}


@dataclass
class LabelView:
    """Everything printed on one label."""
    order_id: int
    order_number: str
    marketplace: str
    customer_name: str
    address: str
    district: str
    city: str
    desi: str
    barcode_value: str
    has_tracking_number: bool
    product_code: str
    product_name: str

    @classmethod
    def from_enriched(cls, enriched) -> "LabelView":
        order = enriched.order
        address = extract_shipping_address(order.raw_data)
        tracking = order.cargo_tracking_number or ""
        return cls(
            order_id=order.id,
            order_number=order.order_number or "",
            marketplace=order.platform or "",
            customer_name=order.customer_name or "",
            address=address.full_address,
            district=address.district,
            city=address.city,
            desi=f"{enriched.computation.total_desi:.2f}",
            barcode_value=tracking or order.order_number or "",
            has_tracking_number=bool(tracking),
            product_code=enriched.product_code or MISSING_PRODUCT_CODE,
            product_name=enriched.product_name,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def render_barcode_svg(value: str) -> Optional[str]:
    """Inline Code128 SVG for a value, or None when it cannot be encoded."""
    if not value:
        return None
    # Code128 covers ASCII only; anything else would be dropped silently
    if not value.isascii():
        logger.warning(f"Barcode value is not ASCII, printing as text: {value!r}")
        return None
    try:
        drawing = createBarcodeDrawing("Code128", value=value, **BARCODE_OPTIONS)
        svg = renderSVG.drawToString(drawing)
    except (KeyError, ValueError) as e:
        logger.warning(f"Barcode could not be encoded for {value!r}: {e}")
        return None

    # Drop the XML declaration and doctype so the SVG can be inlined
    start = svg.find("<svg")
    return svg[start:] if start >= 0 else None


_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)


def render_labels(
    labels: Sequence[LabelView],
    printed_on: Optional[date] = None,
    auto_print: Optional[bool] = None,
) -> str:
    """Render the label document. Unencodable barcodes fall back to plain text."""
    printed_on = printed_on or date.today()
    if auto_print is None:
        auto_print = settings.CARGO_LABEL_AUTO_PRINT

    pages: List[Dict[str, Any]] = []
    for label in labels:
        svg = render_barcode_svg(label.barcode_value)
        pages.append({
            "label": label,
            "barcode_svg": Markup(svg) if svg else None,
        })

    template = _env.get_template(LABEL_TEMPLATE)
    return template.render(
        pages=pages,
        printed_on=printed_on.strftime("%d.%m.%Y"),
        auto_print=auto_print,
    )
