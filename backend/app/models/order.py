"""
Order model

Marketplace orders as ingested by the order sync jobs. The marketplace payload is
kept verbatim in raw_data; the cargo pipeline also keeps its print state there
(is_printed / printed_at).
"""
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Float, DateTime, JSON, Index
from sqlalchemy.orm import relationship

from app.core.database import Base


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_organization_id", "organization_id"),
        Index("ix_orders_org_order_date", "organization_id", "order_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(String(64), nullable=False)

    # Marketplace identity
    platform = Column(String(50), nullable=True)  # Trendyol, Hepsiburada, WooCommerce...
    order_number = Column(String(100), nullable=False, index=True)
    status = Column(String(50), nullable=True)
    order_date = Column(DateTime(timezone=True), nullable=True)

    # Customer
    customer_name = Column(String(255), nullable=True)

    # Resolved product (may be empty, then derived from raw_data lines)
    product_code = Column(String(100), nullable=True)
    product_name = Column(String(500), nullable=True)
    product_count = Column(Integer, nullable=True)

    # Declared volumetric weight when no parcel data exists
    desi = Column(Float, nullable=True)

    # Marketplace payload + print state bag
    raw_data = Column(JSON, default=dict)

    # Cargo
    cargo_tracking_number = Column(String(100), nullable=True)
    cargo_provider = Column(String(50), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    cargo_shipments = relationship("CargoShipment", back_populates="order")

    @property
    def is_printed(self) -> bool:
        return bool((self.raw_data or {}).get("is_printed"))

    def __repr__(self):
        return f"<Order(id={self.id}, order_number={self.order_number}, platform={self.platform})>"
