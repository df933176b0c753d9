from datetime import datetime
from typing import Optional

from pydantic import Field

from product_inventory.schemas.product import CamelModel


class ErrorResponse(CamelModel):
    """Body returned for every failed request."""
    timestamp: datetime
    status: int = Field(..., examples=[404])
    error: str = Field(..., examples=["Not Found"])
    message: str = Field(..., examples=["Product not found with id: 42"])
    error_code: str = Field(..., examples=["PRODUCT_NOT_FOUND"])
    details: Optional[str] = None
    path: str = Field(..., examples=["/api/v1/products/42"])
    errors: Optional[dict[str, str]] = Field(
        None, description="Field-level validation messages, keyed by field name"
    )
