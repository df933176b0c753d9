from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from decimal import Decimal
import math
from typing import Annotated, Optional

SKU_PATTERN = r"^[A-Z0-9-]+$"

# Decimals stay exact in Python and are written to JSON as numbers
JsonDecimal = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    """Base schema exposing camelCase keys while accepting snake_case too."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductBase(CamelModel):
    """Base schema for Product with common attributes."""
    name: str = Field(..., min_length=2, max_length=100, description="Product name",
                      examples=["Premium Laptop"])
    description: Optional[str] = Field(None, max_length=500, description="Product description",
                                       examples=["High-performance laptop with 16GB RAM"])
    price: JsonDecimal = Field(..., ge=Decimal("0.01"), max_digits=10, decimal_places=2,
                               description="Unit price (must be at least 0.01)", examples=[999.99])
    quantity: int = Field(..., ge=0, description="Units in stock (must be non-negative)",
                          examples=[10])
    sku: str = Field(..., max_length=50, pattern=SKU_PATTERN,
                     description="Stock Keeping Unit: uppercase letters, digits and dashes",
                     examples=["LAP-001"])
    weight: JsonDecimal = Field(..., ge=0, max_digits=10, decimal_places=2,
                                description="Weight in kilograms", examples=[2.5])
    dimensions: str = Field(..., min_length=1, max_length=20,
                            description="Dimensions as 'LxWxH' in centimeters",
                            examples=["30x20x5"])

    @field_validator("dimensions")
    @classmethod
    def dimensions_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Dimensions are required")
        return value


class ProductCreate(ProductBase):
    """Schema for creating a new product."""
    pass


class ProductUpdate(ProductBase):
    """
    Schema for updating an existing product.

    Updates replace every client-managed field; the expected version
    travels as the `version` query parameter.
    """
    pass


class ProductResponse(ProductBase):
    """Schema for product response including server-managed fields."""
    id: int
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductPageResponse(CamelModel):
    """Pagination envelope for product lists. Pages are 0-based."""
    items: list[ProductResponse]
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int

    @classmethod
    def from_page(cls, items, page: int, size: int, total: int) -> "ProductPageResponse":
        return cls(
            items=[ProductResponse.model_validate(item) for item in items],
            current_page=page,
            total_pages=math.ceil(total / size) if total > 0 else 0,
            total_items=total,
            items_per_page=size,
        )


class SkuExistsResponse(BaseModel):
    """Result of a SKU existence check."""
    sku: str
    exists: bool
