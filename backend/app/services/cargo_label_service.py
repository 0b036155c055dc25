"""
Cargo label service

Coordinates the label batch:
- load and enrich the selected orders
- refuse already printed orders unless forced
- register shipments with the carrier for orders without a tracking number
- mark the batch as printed and render the label document

Also serves the read-only carrier queries (tracking, returns) and manual
single shipments.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    AlreadyPrintedError,
    CarrierError,
    CarrierUnconfiguredError,
    EmptyBatchError,
    OrderNotFoundError,
    ShipmentValidationError,
    UnauthorizedError,
)
from app.models.cargo import CargoShipment
from app.models.order import Order
from app.services.cargo_connections import CargoConnectionService
from app.services.encryption import sanitize_for_logging
from app.services.label_renderer import LabelView, render_labels
from app.services.order_aggregator import EnrichedOrder, OrderAggregator
from app.services.order_lines import PLACEHOLDER_PHONE, extract_shipping_address
from app.services.print_guard import PrintGuard
from app.services.shipment_scenarios import ShipmentDraft, ShipmentScenario, resolve_shipment
from app.services.surat_client import (
    MAX_ADDRESS_LENGTH,
    SuratKargoClient,
    SuratShipmentResult,
    create_surat_client_from_connection,
)

logger = logging.getLogger(__name__)

DEFAULT_RECIPIENT_NAME = "Alici"
DEFAULT_UNIT_DESI = "1"


@dataclass
class LabelBatchResult:
    """Outcome of a label batch: either a conflict or the rendered document."""
    success: bool
    conflict: bool = False
    conflicting_orders: List[str] = field(default_factory=list)
    document: Optional[str] = None
    labels: List[LabelView] = field(default_factory=list)
    shipped_orders: List[str] = field(default_factory=list)
    failed_orders: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def conflict_result(cls, order_numbers: Sequence[str]) -> "LabelBatchResult":
        return cls(success=False, conflict=True, conflicting_orders=list(order_numbers))


def _format_desi(value) -> Optional[str]:
    try:
        desi = float(value)
    except (TypeError, ValueError):
        return None
    if desi <= 0:
        return None
    return f"{desi:g}"


def build_order_draft(enriched: EnrichedOrder) -> ShipmentDraft:
    """Shipment draft for a marketplace order, filled from its payload."""
    order = enriched.order
    address = extract_shipping_address(order.raw_data)

    unit_desi = None
    if enriched.product is not None and enriched.product.parcels:
        unit_desi = _format_desi(enriched.product.parcels[0].desi)
    if unit_desi is None:
        unit_desi = _format_desi(order.desi)

    return ShipmentDraft(
        recipient_name=order.customer_name or DEFAULT_RECIPIENT_NAME,
        address=address.full_address[:MAX_ADDRESS_LENGTH],
        city=address.city,
        district=address.district,
        phone=address.phone or PLACEHOLDER_PHONE,
        order_reference=order.order_number,
        quantity=1,
        unit_desi=unit_desi or DEFAULT_UNIT_DESI,
    )


class CargoLabelService:
    """
    Label batch orchestration for one request.

    Collaborators can be injected; by default they are built on the session.
    """

    def __init__(
        self,
        db: AsyncSession,
        aggregator: Optional[OrderAggregator] = None,
        print_guard: Optional[PrintGuard] = None,
        connections: Optional[CargoConnectionService] = None,
        client_factory: Callable[[Any], SuratKargoClient] = create_surat_client_from_connection,
    ):
        self.db = db
        self.aggregator = aggregator or OrderAggregator(db)
        self.print_guard = print_guard or PrintGuard(db)
        self.connections = connections or CargoConnectionService(db)
        self.client_factory = client_factory
        self.provider = settings.CARGO_PROVIDER_NAME

    async def _get_client(self, organization_id: str) -> SuratKargoClient:
        """
        Build a carrier client from the tenant's active connection.

        Raises:
            CarrierUnconfiguredError: no active connection or unreadable credentials
        """
        connection = await self.connections.get_active(organization_id, self.provider)
        if connection is None:
            raise CarrierUnconfiguredError(
                f"No active {self.provider} connection. Add carrier credentials in cargo settings.",
                provider=self.provider,
            )
        try:
            return self.client_factory(connection)
        except ValueError as e:
            raise CarrierUnconfiguredError(
                f"Stored {self.provider} credentials could not be read: {e}",
                provider=self.provider,
            )

    async def _get_order(self, organization_id: str, order_id: int) -> Order:
        result = await self.db.execute(
            select(Order).where(
                Order.organization_id == organization_id,
                Order.id == order_id,
            )
        )
        order = result.scalar_one_or_none()
        if not order:
            raise OrderNotFoundError(f"Order {order_id} not found", details={"order_id": order_id})
        return order

    # ==================== Label Batch ====================

    async def generate_labels(
        self,
        organization_id: str,
        order_ids: Sequence[int],
        force: bool = False,
    ) -> LabelBatchResult:
        """
        Run a label batch.

        Carrier failures never abort the batch: the affected order is printed
        without an official tracking number.

        Raises:
            UnauthorizedError: no tenant
            EmptyBatchError: no order ids
            OrderNotFoundError: none of the ids belong to the tenant
        """
        if not organization_id:
            raise UnauthorizedError("No organization context")
        if not order_ids:
            raise EmptyBatchError("No orders selected")

        batch = await self.aggregator.load_batch(organization_id, order_ids)
        if not batch:
            raise OrderNotFoundError("Selected orders were not found", details={"order_ids": list(order_ids)})

        orders = [item.order for item in batch]
        try:
            self.print_guard.check(orders, force)
        except AlreadyPrintedError as e:
            logger.info(f"Label batch refused, already printed: {e.order_numbers}")
            return LabelBatchResult.conflict_result(e.order_numbers)

        result = LabelBatchResult(success=True)

        client: Optional[SuratKargoClient] = None
        try:
            client = await self._get_client(organization_id)
        except CarrierUnconfiguredError as e:
            logger.warning(f"Printing labels without carrier registration: {e.message}")

        try:
            for item in batch:
                if client is None or not self.print_guard.needs_tracking(item.order):
                    continue
                try:
                    await self._ship_order(organization_id, client, item)
                    result.shipped_orders.append(item.order.order_number)
                except (CarrierError, ShipmentValidationError) as e:
                    logger.error(
                        f"Shipment for order {item.order.order_number} failed: "
                        f"{sanitize_for_logging(e.message)}"
                    )
                    result.failed_orders.append({
                        "order_number": item.order.order_number,
                        "code": e.code,
                        "message": e.message,
                    })
        finally:
            if client is not None:
                await client.close()

        await self.print_guard.commit(orders)

        result.labels = [LabelView.from_enriched(item) for item in batch]
        result.document = render_labels(result.labels)

        logger.info(
            f"Label batch done: {len(batch)} labels, {len(result.shipped_orders)} shipped, "
            f"{len(result.failed_orders)} failed"
        )
        return result

    async def _ship_order(self, organization_id: str, client: SuratKargoClient, item: EnrichedOrder) -> str:
        """Register one order with the carrier and persist its tracking number right away."""
        request = resolve_shipment(build_order_draft(item), ShipmentScenario.MARKETPLACE_SALE)
        shipment = await client.create_shipment(request)

        order = item.order
        order.cargo_tracking_number = shipment.tracking_number
        order.cargo_provider = self.provider
        self.db.add(CargoShipment(
            organization_id=organization_id,
            order_id=order.id,
            tracking_number=shipment.tracking_number,
            status="created",
            cargo_provider=self.provider,
        ))
        await self.db.commit()

        logger.info(f"Order {order.order_number} registered with {self.provider}")
        return shipment.tracking_number

    # ==================== Carrier Queries ====================

    async def track_shipment(self, organization_id: str, order_id: int) -> str:
        """Raw movement history of an order's shipment."""
        if not organization_id:
            raise UnauthorizedError("No organization context")

        order = await self._get_order(organization_id, order_id)
        client = await self._get_client(organization_id)
        try:
            return await client.track_shipment(order.order_number)
        finally:
            await client.close()

    async def list_returns(
        self,
        organization_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> str:
        """Raw list of return shipments; defaults to the last CARGO_RETURNS_DEFAULT_DAYS days."""
        if not organization_id:
            raise UnauthorizedError("No organization context")

        end_date = end_date or date.today()
        start_date = start_date or end_date - timedelta(days=settings.CARGO_RETURNS_DEFAULT_DAYS)

        client = await self._get_client(organization_id)
        try:
            return await client.list_returns(start_date, end_date)
        finally:
            await client.close()

    async def create_manual_shipment(
        self,
        organization_id: str,
        draft: ShipmentDraft,
        scenario=ShipmentScenario.MARKETPLACE_SALE,
    ) -> SuratShipmentResult:
        """
        Register a single shipment entered by hand. Nothing is persisted.

        Raises:
            ShipmentValidationError: before any network call
            CarrierUnconfiguredError, CarrierError
        """
        if not organization_id:
            raise UnauthorizedError("No organization context")

        request = resolve_shipment(draft, scenario)
        client = await self._get_client(organization_id)
        try:
            return await client.create_shipment(request)
        finally:
            await client.close()
