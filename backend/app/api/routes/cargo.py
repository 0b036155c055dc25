"""
Cargo API Routes

Provides endpoints for:
- Order listing for the cargo screen
- Label batches (carrier registration + printable document)
- Tracking and return queries
- Manual single shipments
- Carrier connection settings

CargoBaseError subclasses raised below are turned into JSON errors by the
application's exception handler.
"""
import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import (
    get_cargo_connection_service,
    get_cargo_label_service,
    get_order_aggregator,
    get_organization_id,
)
from app.core.config import settings
from app.services.cargo_connections import CargoConnectionService
from app.services.cargo_label_service import CargoLabelService
from app.services.order_aggregator import EnrichedOrder, OrderAggregator, OrderFilters
from app.services.shipment_scenarios import ShipmentDraft, parse_scenario
from app.schemas.cargo import (
    CargoConnectionResponse,
    CargoConnectionUpdate,
    CargoOrderListResponse,
    CargoOrderResponse,
    ComputedParcels,
    LabelBatchRequest,
    LabelBatchResponse,
    LabelResponse,
    ManualShipmentRequest,
    ManualShipmentResponse,
    ParcelResponse,
    ReturnsRequest,
    ReturnsResponse,
    TrackRequest,
    TrackResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cargo", tags=["cargo"])


# ==================== Helper Functions ====================


def enriched_to_response(item: EnrichedOrder) -> CargoOrderResponse:
    order = item.order
    raw = order.raw_data or {}
    computation = item.computation
    return CargoOrderResponse(
        id=order.id,
        order_number=order.order_number,
        platform=order.platform,
        status=order.status,
        order_date=order.order_date,
        customer_name=order.customer_name,
        product_code=item.product_code,
        product_name=item.product_name,
        product_count=order.product_count,
        cargo_tracking_number=order.cargo_tracking_number,
        cargo_provider=order.cargo_provider,
        is_printed=item.is_printed,
        printed_at=raw.get("printed_at"),
        computed=ComputedParcels(
            parcels=[ParcelResponse(**p.to_dict()) for p in computation.parcels],
            total_desi=round(computation.total_desi, 2),
            is_missing_info=computation.is_missing_info,
        ),
    )


def connection_to_response(connection) -> CargoConnectionResponse:
    return CargoConnectionResponse(
        id=connection.id,
        provider=connection.provider,
        username=connection.username,
        is_active=connection.is_active,
        has_password=bool(connection.password_encrypted),
        updated_at=connection.updated_at,
    )


# ==================== Orders ====================


@router.get("/orders", response_model=CargoOrderListResponse)
async def list_cargo_orders(
    status: Optional[str] = Query(None, description="Comma separated statuses"),
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    marketplace: Optional[str] = None,
    search: Optional[str] = None,
    printed: Optional[str] = Query(None, pattern="^(true|false|all)$"),
    page: int = Query(0, ge=0),
    page_size: int = Query(settings.CARGO_DEFAULT_PAGE_SIZE, ge=1, le=200),
    organization_id: str = Depends(get_organization_id),
    aggregator: OrderAggregator = Depends(get_order_aggregator),
):
    """List orders for the cargo screen, newest first."""
    filters = OrderFilters(
        status=status,
        date_from=date_from,
        date_to=date_to,
        marketplace=marketplace,
        search=search,
        printed=printed,
        page=page,
        page_size=page_size,
    )
    orders, total = await aggregator.list_orders(organization_id, filters)

    return CargoOrderListResponse(
        orders=[enriched_to_response(item) for item in orders],
        total=total,
        page=page,
        page_size=page_size,
    )


# ==================== Labels ====================


@router.post("/labels", response_model=LabelBatchResponse)
async def generate_cargo_labels(
    request: LabelBatchRequest,
    organization_id: str = Depends(get_organization_id),
    service: CargoLabelService = Depends(get_cargo_label_service),
):
    """
    Register shipments and render labels for the selected orders.

    Already printed orders produce a conflict response unless force is set.
    """
    result = await service.generate_labels(organization_id, request.order_ids, force=request.force)

    return LabelBatchResponse(
        success=result.success,
        conflict=result.conflict,
        conflicting_orders=result.conflicting_orders,
        document=result.document,
        labels=[
            LabelResponse(
                order_id=label.order_id,
                order_number=label.order_number,
                marketplace=label.marketplace,
                customer_name=label.customer_name,
                barcode_value=label.barcode_value,
                has_tracking_number=label.has_tracking_number,
                desi=label.desi,
                product_code=label.product_code,
                product_name=label.product_name,
            )
            for label in result.labels
        ],
        shipped_orders=result.shipped_orders,
        failed_orders=result.failed_orders,
    )


# ==================== Carrier Queries ====================


@router.post("/track", response_model=TrackResponse)
async def track_cargo_shipment(
    request: TrackRequest,
    organization_id: str = Depends(get_organization_id),
    service: CargoLabelService = Depends(get_cargo_label_service),
):
    """Carrier movement history of an order."""
    result = await service.track_shipment(organization_id, request.order_id)
    return TrackResponse(order_id=request.order_id, result=result)


@router.post("/returns", response_model=ReturnsResponse)
async def list_cargo_returns(
    request: ReturnsRequest,
    organization_id: str = Depends(get_organization_id),
    service: CargoLabelService = Depends(get_cargo_label_service),
):
    """Return shipments in a date range (default: the last CARGO_RETURNS_DEFAULT_DAYS days)."""
    end_date = request.end_date or date.today()
    start_date = request.start_date or end_date - timedelta(days=settings.CARGO_RETURNS_DEFAULT_DAYS)

    result = await service.list_returns(organization_id, start_date, end_date)
    return ReturnsResponse(start_date=start_date, end_date=end_date, result=result)


@router.post("/shipments", response_model=ManualShipmentResponse)
async def create_manual_shipment(
    request: ManualShipmentRequest,
    organization_id: str = Depends(get_organization_id),
    service: CargoLabelService = Depends(get_cargo_label_service),
):
    """Register a single shipment entered by hand."""
    draft = ShipmentDraft(
        recipient_name=request.name,
        address=request.address,
        city=request.city,
        district=request.district,
        phone=request.phone,
        order_reference=request.order_id,
        collection_amount=request.amount,
    )
    result = await service.create_manual_shipment(organization_id, draft, parse_scenario(request.scenario))
    return ManualShipmentResponse(tracking_number=result.tracking_number, message=result.message)


# ==================== Connections ====================


@router.get("/connections", response_model=List[CargoConnectionResponse])
async def list_cargo_connections(
    organization_id: str = Depends(get_organization_id),
    service: CargoConnectionService = Depends(get_cargo_connection_service),
):
    connections = await service.list_connections(organization_id)
    return [connection_to_response(c) for c in connections]


@router.put("/connections/{provider}", response_model=CargoConnectionResponse)
async def save_cargo_connection(
    provider: str,
    request: CargoConnectionUpdate,
    organization_id: str = Depends(get_organization_id),
    service: CargoConnectionService = Depends(get_cargo_connection_service),
):
    """Create or update carrier credentials; saving re-activates the connection."""
    connection = await service.save_connection(
        organization_id,
        provider,
        username=request.username,
        password=request.password,
    )
    return connection_to_response(connection)


@router.delete("/connections/{provider}")
async def delete_cargo_connection(
    provider: str,
    organization_id: str = Depends(get_organization_id),
    service: CargoConnectionService = Depends(get_cargo_connection_service),
):
    deleted = await service.delete_connection(organization_id, provider)
    return {"success": True, "deleted": deleted}
