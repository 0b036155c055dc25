"""
Cargo integration models

CargoConnection: per-tenant carrier credentials (one active integration at a time).
CargoShipment: append-only audit row written for every shipment the carrier accepted.
"""
from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text, ForeignKey, Index
)
from sqlalchemy.orm import relationship

from app.core.database import Base


class CargoConnection(Base):
    """
    Carrier credentials for a tenant.

    The password is stored Fernet-encrypted (see app.services.encryption).
    """
    __tablename__ = "cargo_connections"
    __table_args__ = (
        Index("ix_cargo_connections_org_provider", "organization_id", "provider", unique=True),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(String(64), nullable=False)
    provider = Column(String(50), nullable=False)  # "Surat"

    username = Column(String(100), nullable=False)
    password_encrypted = Column(Text, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )

    def __repr__(self):
        return f"<CargoConnection(id={self.id}, provider={self.provider}, active={self.is_active})>"


class CargoShipment(Base):
    """Shipment record created once per successful carrier call. Never updated."""
    __tablename__ = "cargo_shipments"
    __table_args__ = (
        Index("ix_cargo_shipments_order_id", "order_id"),
        Index("ix_cargo_shipments_tracking_number", "tracking_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(String(64), nullable=False)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)

    tracking_number = Column(String(100), nullable=False)
    status = Column(String(30), default="created", nullable=False)
    cargo_provider = Column(String(50), nullable=False)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    order = relationship("Order", back_populates="cargo_shipments")

    def __repr__(self):
        return f"<CargoShipment(id={self.id}, order_id={self.order_id}, tracking={self.tracking_number})>"
