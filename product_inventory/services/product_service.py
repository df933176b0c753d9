from decimal import Decimal
from typing import List, Optional, Tuple
import logging

from sqlalchemy.exc import SQLAlchemyError

from product_inventory.exceptions import (
    ProductConflictError,
    ProductInternalServerError,
    ProductNotFoundError,
    ProductOptimisticLockError,
    ProductUnprocessableEntityError,
)
from product_inventory.models.product import Product
from product_inventory.repositories.base import (
    ProductStore,
    RecordNotFound,
    UniqueViolation,
    VersionMismatch,
)
from product_inventory.schemas.product import ProductBase
from product_inventory.services.validation import validate_page_params, validate_sort_params

logger = logging.getLogger(__name__)


class ProductService:
    """
    Service class for Product operations.

    This service handles:
    - Semantic validation the request schemas cannot express
    - SKU uniqueness (advisory pre-check, the store's unique constraint decides)
    - Version-checked updates (optimistic locking)
    - Translating store outcomes into product errors

    CONCURRENT UPDATES:
    ===================
    Clients read a product together with its `version` and echo that version
    back when updating. The service rejects a stale version up front, and the
    store's conditional UPDATE rejects writers that lose a race after the
    read. Per version step exactly one writer succeeds; every other one gets
    ProductOptimisticLockError and must refetch before retrying.
    """

    def __init__(self, store: ProductStore):
        self.store = store

    def create_product(self, product_data: ProductBase) -> Product:
        """
        Create a new product.

        Args:
            product_data: Validated product payload

        Returns:
            Stored product with id, version and timestamps populated

        Raises:
            ProductUnprocessableEntityError: If a value is semantically invalid
            ProductConflictError: If the SKU is already taken
        """
        logger.info(f"Creating new product: {product_data.name}")
        self._validate_product_data(product_data)

        sku = product_data.sku
        if self._run(self.store.exists_by_sku, sku):
            logger.warning(f"Conflict: product with SKU {sku} already exists")
            raise self._sku_conflict(sku)

        try:
            product = self._run(self.store.insert, product_data.model_dump())
        except UniqueViolation:
            # Another request inserted the same SKU after our pre-check
            logger.warning(f"Conflict: concurrent insert of SKU {sku}")
            raise self._sku_conflict(sku)

        logger.info(f"Product created successfully with ID: {product.id}")
        return product

    def get_product_by_id(self, product_id: int) -> Product:
        logger.info(f"Retrieving product by ID: {product_id}")
        self._validate_product_id(product_id)

        product = self._run(self.store.find_by_id, product_id)
        if not product:
            logger.warning(f"Product not found with ID: {product_id}")
            raise self._not_found(product_id)
        return product

    def get_all_products(
        self,
        page: int = 0,
        size: int = 10,
        sort_by: str = "name",
        direction: str = "asc",
    ) -> Tuple[List[Product], int]:
        """
        Get a page of products.

        Args:
            page: Page number (0-based)
            size: Maximum number of items on the page
            sort_by: One of the configured sort fields
            direction: 'asc' or 'desc' (case-insensitive)

        Returns:
            Tuple of (products on the page, total count)
        """
        validate_page_params(page, size)
        sort_by, direction = validate_sort_params(sort_by, direction)

        logger.info(
            f"Retrieving products - page: {page}, size: {size}, "
            f"sort: {sort_by} {direction}"
        )
        return self._run(self.store.list, page, size, sort_by, direction)

    def update_product(
        self, product_id: int, product_data: ProductBase, version: int
    ) -> Product:
        """
        Update an existing product with optimistic locking.

        Args:
            product_id: ID of product to update
            product_data: Full replacement of the client-managed fields
            version: Version the client last read

        Returns:
            Updated product carrying its new version

        Raises:
            ProductNotFoundError: If the product doesn't exist
            ProductOptimisticLockError: If the version is stale
            ProductConflictError: If the new SKU belongs to another product
        """
        logger.info(f"Updating product with ID: {product_id}")
        self._validate_product_id(product_id)
        self._validate_product_data(product_data)

        existing = self._run(self.store.find_by_id, product_id)
        if not existing:
            logger.warning(f"Product not found with ID: {product_id}")
            raise self._not_found(product_id)

        if existing.version != version:
            logger.warning(
                f"Optimistic lock failure for product ID: {product_id} "
                f"(expected {version}, found {existing.version})"
            )
            raise ProductOptimisticLockError.for_versions(product_id, version, existing.version)

        try:
            product = self._run(
                self.store.update_with_version, product_id, product_data.model_dump(), version
            )
        except VersionMismatch as e:
            logger.warning(f"Concurrent update lost the race for product ID: {product_id}")
            raise ProductOptimisticLockError.for_versions(
                product_id, e.expected_version, e.actual_version
            )
        except RecordNotFound:
            logger.warning(f"Product deleted during update, ID: {product_id}")
            raise self._not_found(product_id)
        except UniqueViolation:
            logger.warning(f"Conflict: SKU {product_data.sku} already in use")
            raise self._sku_conflict(product_data.sku)

        logger.info(f"Product updated successfully with ID: {product_id}, version: {product.version}")
        return product

    def delete_product(self, product_id: int) -> None:
        logger.info(f"Deleting product with ID: {product_id}")
        try:
            self._run(self.store.delete, product_id)
        except RecordNotFound:
            logger.warning(f"Product not found with ID: {product_id}")
            raise self._not_found(product_id)
        logger.info(f"Product deleted successfully with ID: {product_id}")

    def search_products_by_name(
        self, name: str, page: int = 0, size: int = 10
    ) -> Tuple[List[Product], int]:
        logger.info(f"Searching products by name: {name}")
        return self._run(self.store.find_by_name_containing, name, page, size)

    def find_products_by_price_range(
        self, min_price: Decimal, max_price: Decimal, page: int = 0, size: int = 10
    ) -> Tuple[List[Product], int]:
        logger.info(f"Searching products by price range: {min_price} - {max_price}")
        return self._run(self.store.find_by_price_between, min_price, max_price, page, size)

    def find_products_by_quantity_range(
        self, min_quantity: int, max_quantity: int, page: int = 0, size: int = 10
    ) -> Tuple[List[Product], int]:
        logger.info(f"Searching products by quantity range: {min_quantity} - {max_quantity}")
        return self._run(
            self.store.find_by_quantity_between, min_quantity, max_quantity, page, size
        )

    def find_low_stock_products(self, threshold: int) -> List[Product]:
        logger.info(f"Finding low stock products with threshold: {threshold}")
        return self._run(self.store.find_low_stock, threshold)

    def search_products_by_criteria(
        self,
        name: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        min_quantity: Optional[int] = None,
        max_quantity: Optional[int] = None,
        page: int = 0,
        size: int = 10,
    ) -> Tuple[List[Product], int]:
        logger.info(
            f"Searching products by criteria - name: {name}, "
            f"price: {min_price}-{max_price}, quantity: {min_quantity}-{max_quantity}"
        )
        return self._run(
            self.store.find_by_criteria,
            name, min_price, max_price, min_quantity, max_quantity, page, size,
        )

    def get_product_by_sku(self, sku: str) -> Product:
        logger.info(f"Retrieving product by SKU: {sku}")
        product = self._run(self.store.find_by_sku, sku)
        if not product:
            logger.warning(f"Product not found with SKU: {sku}")
            raise ProductNotFoundError(
                f"Product not found with SKU: {sku}",
                f"No product found with sku = {sku}",
            )
        return product

    def exists_by_sku(self, sku: str) -> bool:
        exists = self._run(self.store.exists_by_sku, sku)
        logger.info(f"Product exists with SKU {sku}: {exists}")
        return exists

    def _run(self, operation, *args):
        """Call the store, surfacing unexpected database failures as internal errors."""
        try:
            return operation(*args)
        except SQLAlchemyError as e:
            name = getattr(operation, "__name__", repr(operation))
            logger.error(f"Store operation {name} failed: {e}", exc_info=True)
            raise ProductInternalServerError(
                "An unexpected error occurred while accessing product data."
            ) from e

    @staticmethod
    def _not_found(product_id: int) -> ProductNotFoundError:
        return ProductNotFoundError(f"Product not found with id: {product_id}")

    @staticmethod
    def _sku_conflict(sku: str) -> ProductConflictError:
        return ProductConflictError(f"A product with SKU {sku} already exists.")

    @staticmethod
    def _validate_product_id(product_id: int) -> None:
        if product_id <= 0:
            raise ProductUnprocessableEntityError("Product ID must be a positive integer.")

    @staticmethod
    def _validate_product_data(product_data: ProductBase) -> None:
        # Repeats the schema rules for callers that bypass request validation
        if not product_data.name or not product_data.name.strip():
            raise ProductUnprocessableEntityError("Product name is required.")
        if product_data.price is None or product_data.price <= 0:
            raise ProductUnprocessableEntityError("Product price must be a positive value.")
        if product_data.quantity is None or product_data.quantity < 0:
            raise ProductUnprocessableEntityError("Product quantity cannot be negative.")
