"""Product domain errors.

Raised by the service layer; the API layer turns each one into a
structured JSON error response using the status code and error code
carried by the exception class.
"""

from typing import Optional

from fastapi import status


class ProductError(Exception):
    """Base class for all product errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "PRODUCT_ERROR"
    default_details: Optional[str] = None

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details if details is not None else self.default_details


class ProductBadRequestError(ProductError):
    """The request itself is invalid (parameters, body shape)."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "PRODUCT_BAD_REQUEST"
    default_details = "The request for the product is invalid"


class ProductNotFoundError(ProductError):
    """No product matches the given id or SKU."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "PRODUCT_NOT_FOUND"
    default_details = "The requested product could not be found in the system"


class ProductConflictError(ProductError):
    """Another product already uses the SKU."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "PRODUCT_CONFLICT"
    default_details = "A conflict occurred while processing the product operation"


class ProductOptimisticLockError(ProductError):
    """The product changed since the client last read it."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "PRODUCT_OPTIMISTIC_LOCK_ERROR"
    default_details = "The product was modified by another transaction"

    @classmethod
    def for_versions(cls, product_id: int, expected: int, actual: int) -> "ProductOptimisticLockError":
        return cls(
            f"Product with ID {product_id} has been modified. "
            f"Expected version {expected}, but found version {actual}"
        )


class ProductUnprocessableEntityError(ProductError):
    """The request is well-formed but a value is semantically invalid."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "PRODUCT_UNPROCESSABLE_ENTITY"

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message, details if details is not None else message)


class ProductInternalServerError(ProductError):
    """Uncategorized failure while handling a product operation."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "PRODUCT_INTERNAL_SERVER_ERROR"
    default_details = "An internal server error occurred while processing the product operation"
