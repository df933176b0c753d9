from typing import Tuple

from product_inventory.config import get_settings
from product_inventory.exceptions import ProductBadRequestError

settings = get_settings()

# Largest value a 32-bit INTEGER column (ids, quantities, versions) can hold
MAX_DB_INT = 2**31 - 1


def validate_page_params(page: int, size: int) -> None:
    if page < 0:
        raise ProductBadRequestError("Page number must be zero or greater.")
    if size <= 0:
        raise ProductBadRequestError("Size must be a positive integer.")


def validate_sort_params(sort_by: str, direction: str) -> Tuple[str, str]:
    """
    Check sort arguments against the configured choices.

    Both values are matched case-insensitively.

    Returns:
        Tuple of (sort_by, direction), lowercased
    """
    sort_by = sort_by.lower()
    direction = direction.lower()
    if sort_by not in settings.PRODUCT_SORT_FIELDS:
        raise ProductBadRequestError(
            "Sort field is invalid. Valid fields are: "
            + ", ".join(settings.PRODUCT_SORT_FIELDS)
        )
    if direction not in settings.PRODUCT_SORT_DIRECTIONS:
        raise ProductBadRequestError("Sort direction must be 'asc' or 'desc'.")
    return sort_by, direction


def validate_range(name: str, minimum, maximum) -> None:
    if minimum is not None and maximum is not None and minimum > maximum:
        raise ProductBadRequestError(f"min{name} must not be greater than max{name}.")
