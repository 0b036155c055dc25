"""
Master product catalog

Each product lists the parcels one unit ships in (a sofa may ship as three boxes).
"""
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.core.database import Base


class Product(Base):
    __tablename__ = "master_products"
    __table_args__ = (
        Index("ix_master_products_org_code", "organization_id", "code"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(String(64), nullable=False)
    code = Column(String(100), nullable=False)
    name = Column(String(500), nullable=False)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    parcels = relationship(
        "ProductParcel",
        back_populates="product",
        order_by="ProductParcel.position",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Product(id={self.id}, code={self.code})>"


class ProductParcel(Base):
    """Packaging definition for one unit of a product."""
    __tablename__ = "product_parcels"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("master_products.id"), nullable=False, index=True)
    position = Column(Integer, default=0, nullable=False)

    # Dimensions in cm, weight in kg
    width = Column(Float, nullable=True)
    height = Column(Float, nullable=True)
    depth = Column(Float, nullable=True)
    weight = Column(Float, nullable=True)
    desi = Column(Float, nullable=False, default=0.0)

    product = relationship("Product", back_populates="parcels")

    def __repr__(self):
        return f"<ProductParcel(id={self.id}, product_id={self.product_id}, desi={self.desi})>"
