"""API dependencies for wiring services to the request's database session."""

from fastapi import Depends
from sqlalchemy.orm import Session

from product_inventory.database import get_db
from product_inventory.repositories.product_repository import SQLAlchemyProductRepository
from product_inventory.services.product_service import ProductService


def get_product_service(db: Session = Depends(get_db)) -> ProductService:
    """Build a ProductService over the request-scoped session."""
    return ProductService(SQLAlchemyProductRepository(db))
