from app.models.order import Order
from app.models.product import Product, ProductParcel
from app.models.cargo import CargoConnection, CargoShipment

__all__ = [
    "Order",
    "Product",
    "ProductParcel",
    "CargoConnection",
    "CargoShipment",
]
