from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from product_inventory.models.product import Product, utc_now
from product_inventory.repositories.base import (
    ProductStore,
    RecordNotFound,
    UniqueViolation,
    VersionMismatch,
)

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "name": Product.name,
    "sku": Product.sku,
    "price": Product.price,
}


def _is_sku_violation(exc: IntegrityError) -> bool:
    """Match the unique constraint across SQLite, PostgreSQL and MySQL messages."""
    message = str(exc.orig).lower()
    return "uq_products_sku" in message or "products.sku" in message


class SQLAlchemyProductRepository(ProductStore):
    """
    Product store backed by a SQLAlchemy session.

    Every write commits its own transaction and rolls back on failure,
    so a failed call leaves no partial state behind.

    OPTIMISTIC LOCKING:
    ===================
    Updates go through a single conditional statement:

        UPDATE products
        SET ..., version = version + 1, updated_at = :now
        WHERE id = :id AND version = :expected_version

    If another writer committed first, the WHERE clause matches 0 rows and
    nothing is written. A follow-up read tells a missing row apart from a
    stale version.
    """

    def __init__(self, db: Session):
        self.db = db

    def insert(self, fields: Dict[str, Any]) -> Product:
        now = utc_now()
        product = Product(**fields, version=0, created_at=now, updated_at=now)
        self.db.add(product)
        self._commit(fields.get("sku"))
        self.db.refresh(product)
        return product

    def find_by_id(self, product_id: int) -> Optional[Product]:
        return self.db.query(Product).filter(Product.id == product_id).first()

    def find_by_sku(self, sku: str) -> Optional[Product]:
        return self.db.query(Product).filter(Product.sku == sku).first()

    def exists_by_sku(self, sku: str) -> bool:
        return bool(
            self.db.query(self.db.query(Product).filter(Product.sku == sku).exists()).scalar()
        )

    def list(
        self, page: int, size: int, sort_field: str, direction: str
    ) -> Tuple[List[Product], int]:
        column = SORT_COLUMNS[sort_field]
        order = column.desc() if direction == "desc" else column.asc()
        return self._paginate(self.db.query(Product), page, size, order)

    def update_with_version(
        self, product_id: int, fields: Dict[str, Any], expected_version: int
    ) -> Product:
        statement = (
            update(Product)
            .where(Product.id == product_id, Product.version == expected_version)
            .values(**fields, version=Product.version + 1, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(statement)
        except IntegrityError as e:
            self.db.rollback()
            if _is_sku_violation(e):
                raise UniqueViolation("sku", fields.get("sku")) from e
            raise
        except SQLAlchemyError:
            self.db.rollback()
            raise

        if result.rowcount == 0:
            self.db.rollback()
            current_version = (
                self.db.query(Product.version).filter(Product.id == product_id).scalar()
            )
            if current_version is None:
                raise RecordNotFound(f"Product {product_id} does not exist")
            raise VersionMismatch(product_id, expected_version, current_version)

        self._commit(fields.get("sku"))
        product = self.find_by_id(product_id)
        if product is None:
            # Deleted by another writer after this update committed
            raise RecordNotFound(f"Product {product_id} does not exist")
        # Reload attributes the bulk UPDATE bypassed in the identity map
        self.db.refresh(product)
        return product

    def delete(self, product_id: int) -> None:
        product = self.find_by_id(product_id)
        if not product:
            raise RecordNotFound(f"Product {product_id} does not exist")

        self.db.delete(product)
        self._commit()

    def find_by_name_containing(
        self, name: str, page: int, size: int
    ) -> Tuple[List[Product], int]:
        query = self.db.query(Product).filter(Product.name.ilike(f"%{name}%"))
        return self._paginate(query, page, size, Product.name.asc())

    def find_by_price_between(
        self, min_price: Decimal, max_price: Decimal, page: int, size: int
    ) -> Tuple[List[Product], int]:
        query = self.db.query(Product).filter(Product.price.between(min_price, max_price))
        return self._paginate(query, page, size, Product.price.asc())

    def find_by_quantity_between(
        self, min_quantity: int, max_quantity: int, page: int, size: int
    ) -> Tuple[List[Product], int]:
        query = self.db.query(Product).filter(
            Product.quantity.between(min_quantity, max_quantity)
        )
        return self._paginate(query, page, size, Product.quantity.asc())

    def find_low_stock(self, threshold: int) -> List[Product]:
        return (
            self.db.query(Product)
            .filter(Product.quantity < threshold)
            .order_by(Product.quantity.asc(), Product.id.asc())
            .all()
        )

    def find_by_criteria(
        self,
        name: Optional[str],
        min_price: Optional[Decimal],
        max_price: Optional[Decimal],
        min_quantity: Optional[int],
        max_quantity: Optional[int],
        page: int,
        size: int,
    ) -> Tuple[List[Product], int]:
        query = self.db.query(Product)

        # Absent criteria are wildcards
        if name:
            query = query.filter(Product.name.ilike(f"%{name}%"))
        if min_price is not None:
            query = query.filter(Product.price >= min_price)
        if max_price is not None:
            query = query.filter(Product.price <= max_price)
        if min_quantity is not None:
            query = query.filter(Product.quantity >= min_quantity)
        if max_quantity is not None:
            query = query.filter(Product.quantity <= max_quantity)

        return self._paginate(query, page, size, Product.name.asc())

    def _paginate(self, query: Query, page: int, size: int, order) -> Tuple[List[Product], int]:
        total = query.count()
        # id as tie-breaker keeps page boundaries stable for equal sort keys
        items = (
            query.order_by(order, Product.id.asc())
            .offset(page * size)
            .limit(size)
            .all()
        )
        return items, total

    def _commit(self, sku: Optional[str] = None) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if _is_sku_violation(e):
                logger.warning(f"Unique constraint rejected SKU {sku}")
                raise UniqueViolation("sku", sku) from e
            raise
        except SQLAlchemyError:
            self.db.rollback()
            raise
