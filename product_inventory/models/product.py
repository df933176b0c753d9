from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)

from product_inventory.database import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Product(Base):
    """
    Product model representing a catalog entry.

    Attributes:
        id: Unique identifier assigned on insert
        name: Product name (2..100 characters)
        description: Optional free-text description
        price: Unit price, two decimal places (must be positive)
        quantity: Units in stock (must be non-negative)
        sku: Stock Keeping Unit, unique across all products
        weight: Weight in kilograms, two decimal places
        dimensions: Size as 'LxWxH' in centimeters
        version: Optimistic locking counter, starts at 0
        created_at: Timestamp when product was created
        updated_at: Timestamp when product was last updated
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    description = Column(String(500), nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    sku = Column(String(50), nullable=False)
    weight = Column(Numeric(10, 2), nullable=False)
    dimensions = Column(String(20), nullable=False)
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    # Database-level constraints to ensure data integrity
    __table_args__ = (
        UniqueConstraint("sku", name="uq_products_sku"),
        CheckConstraint("price > 0", name="check_price_positive"),
        CheckConstraint("quantity >= 0", name="check_quantity_non_negative"),
        CheckConstraint("weight >= 0", name="check_weight_non_negative"),
        CheckConstraint("version >= 0", name="check_version_non_negative"),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, sku='{self.sku}', version={self.version})>"
