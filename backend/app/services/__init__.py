# Services layer for business logic
from app.services.cargo_connections import CargoConnectionService
from app.services.cargo_label_service import CargoLabelService, LabelBatchResult
from app.services.order_aggregator import OrderAggregator, OrderFilters
from app.services.print_guard import PrintGuard
from app.services.product_catalog import ProductCatalog
from app.services.surat_client import SuratKargoClient

__all__ = [
    "CargoConnectionService",
    "CargoLabelService",
    "LabelBatchResult",
    "OrderAggregator",
    "OrderFilters",
    "PrintGuard",
    "ProductCatalog",
    "SuratKargoClient",
]
