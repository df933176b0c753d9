"""Product store contract.

The service layer depends on ``ProductStore`` only; which implementation
backs it is decided when the service is constructed (see
``product_inventory.api.deps``).

Store outcomes that are not plain results are raised as the exceptions
below. They describe what happened in storage and carry no HTTP meaning;
the service translates them into ``product_inventory.exceptions``.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from product_inventory.models.product import Product


class StoreError(Exception):
    """Base class for store outcomes."""


class RecordNotFound(StoreError):
    """No row with the given key."""


class VersionMismatch(StoreError):
    """The row exists but its version differs from the expected one."""

    def __init__(self, record_id: int, expected_version: int, actual_version: int):
        super().__init__(
            f"Product {record_id}: expected version {expected_version}, found {actual_version}"
        )
        self.record_id = record_id
        self.expected_version = expected_version
        self.actual_version = actual_version


class UniqueViolation(StoreError):
    """A unique constraint rejected the write."""

    def __init__(self, field: str, value: Any = None):
        super().__init__(f"Duplicate value for {field}: {value}")
        self.field = field
        self.value = value


class ProductStore(ABC):
    """Persistence contract for products.

    Paginated look-ups take a 0-based ``page`` and a ``size`` and return
    ``(items, total)`` where ``total`` counts every matching row.
    """

    @abstractmethod
    def insert(self, fields: Dict[str, Any]) -> Product:
        """Persist a new product. Raises ``UniqueViolation`` on a duplicate SKU."""

    @abstractmethod
    def find_by_id(self, product_id: int) -> Optional[Product]:
        """Return the product or ``None``."""

    @abstractmethod
    def find_by_sku(self, sku: str) -> Optional[Product]:
        """Return the product with this exact SKU or ``None``."""

    @abstractmethod
    def exists_by_sku(self, sku: str) -> bool:
        """Whether any product uses this SKU."""

    @abstractmethod
    def list(
        self, page: int, size: int, sort_field: str, direction: str
    ) -> Tuple[List[Product], int]:
        """Page through all products ordered by ``sort_field``."""

    @abstractmethod
    def update_with_version(
        self, product_id: int, fields: Dict[str, Any], expected_version: int
    ) -> Product:
        """Write ``fields`` only if the stored version equals ``expected_version``.

        Raises ``RecordNotFound``, ``VersionMismatch`` or ``UniqueViolation``.
        """

    @abstractmethod
    def delete(self, product_id: int) -> None:
        """Remove the product. Raises ``RecordNotFound`` if absent."""

    @abstractmethod
    def find_by_name_containing(
        self, name: str, page: int, size: int
    ) -> Tuple[List[Product], int]:
        """Case-insensitive substring match on name."""

    @abstractmethod
    def find_by_price_between(
        self, min_price: Decimal, max_price: Decimal, page: int, size: int
    ) -> Tuple[List[Product], int]:
        """Products priced within the inclusive range."""

    @abstractmethod
    def find_by_quantity_between(
        self, min_quantity: int, max_quantity: int, page: int, size: int
    ) -> Tuple[List[Product], int]:
        """Products whose quantity lies within the inclusive range."""

    @abstractmethod
    def find_low_stock(self, threshold: int) -> List[Product]:
        """All products with quantity strictly below ``threshold``."""

    @abstractmethod
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
        """AND of the supplied predicates; ``None`` matches everything."""
