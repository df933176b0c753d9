from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from product_inventory.api.deps import get_product_service
from product_inventory.config import get_settings
from product_inventory.schemas.error import ErrorResponse
from product_inventory.schemas.product import (
    ProductCreate,
    ProductPageResponse,
    ProductResponse,
    ProductUpdate,
    SkuExistsResponse,
)
from product_inventory.services.product_service import ProductService
from product_inventory.services.validation import (
    MAX_DB_INT,
    validate_page_params,
    validate_range,
    validate_sort_params,
)

settings = get_settings()

router = APIRouter(prefix="/products", tags=["Products"])

BAD_REQUEST = {status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse, "description": "Invalid input"}}
NOT_FOUND = {status.HTTP_404_NOT_FOUND: {"model": ErrorResponse, "description": "Product not found"}}
CONFLICT = {status.HTTP_409_CONFLICT: {"model": ErrorResponse, "description": "Duplicate SKU or stale version"}}
UNPROCESSABLE = {
    status.HTTP_422_UNPROCESSABLE_ENTITY: {"model": ErrorResponse, "description": "Invalid product ID"}
}


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**BAD_REQUEST, **CONFLICT},
    summary="Create a new product",
    description="Create a new product. The SKU must not be used by any other product."
)
def create_product(
    product_data: ProductCreate,
    service: ProductService = Depends(get_product_service)
):
    """
    Create a new product.

    - **name**: 2 to 100 characters (required)
    - **price**: at least 0.01 (required)
    - **quantity**: non-negative stock level (required)
    - **sku**: uppercase letters, digits and dashes, unique (required)
    - **weight**, **dimensions**: physical attributes (required)

    The new product starts at version 0.
    """
    return service.create_product(product_data)


@router.get(
    "",
    response_model=ProductPageResponse,
    responses=BAD_REQUEST,
    summary="List all products",
    description="Get a page of products sorted by name, sku or price."
)
def list_products(
    page: int = Query(0, le=MAX_DB_INT, description="Page number (0-based)"),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, le=MAX_DB_INT, description="Items per page"),
    sort_by: str = Query("name", alias="sortBy", description="Sort field: name, sku or price"),
    direction: str = Query("asc", description="Sort direction: asc or desc"),
    service: ProductService = Depends(get_product_service)
):
    """Get paginated list of products."""
    validate_page_params(page, size)
    validate_sort_params(sort_by, direction)

    products, total = service.get_all_products(page, size, sort_by, direction)
    return ProductPageResponse.from_page(products, page, size, total)


@router.get(
    "/search",
    response_model=ProductPageResponse,
    responses=BAD_REQUEST,
    summary="Search products by name",
    description="Case-insensitive substring match on the product name."
)
def search_products(
    name: str = Query(..., min_length=1, description="Text the name must contain"),
    page: int = Query(0, le=MAX_DB_INT, description="Page number (0-based)"),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, le=MAX_DB_INT, description="Items per page"),
    service: ProductService = Depends(get_product_service)
):
    validate_page_params(page, size)
    products, total = service.search_products_by_name(name, page, size)
    return ProductPageResponse.from_page(products, page, size, total)


@router.get(
    "/price-range",
    response_model=ProductPageResponse,
    responses=BAD_REQUEST,
    summary="Find products by price range",
    description="Products whose price lies within the inclusive range."
)
def products_by_price_range(
    min_price: Decimal = Query(..., alias="minPrice", ge=0),
    max_price: Decimal = Query(..., alias="maxPrice", ge=0),
    page: int = Query(0, le=MAX_DB_INT, description="Page number (0-based)"),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, le=MAX_DB_INT, description="Items per page"),
    service: ProductService = Depends(get_product_service)
):
    validate_page_params(page, size)
    validate_range("Price", min_price, max_price)
    products, total = service.find_products_by_price_range(min_price, max_price, page, size)
    return ProductPageResponse.from_page(products, page, size, total)


@router.get(
    "/quantity-range",
    response_model=ProductPageResponse,
    responses=BAD_REQUEST,
    summary="Find products by quantity range",
    description="Products whose stock level lies within the inclusive range."
)
def products_by_quantity_range(
    min_quantity: int = Query(..., alias="minQuantity", ge=0, le=MAX_DB_INT),
    max_quantity: int = Query(..., alias="maxQuantity", ge=0, le=MAX_DB_INT),
    page: int = Query(0, le=MAX_DB_INT, description="Page number (0-based)"),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, le=MAX_DB_INT, description="Items per page"),
    service: ProductService = Depends(get_product_service)
):
    validate_page_params(page, size)
    validate_range("Quantity", min_quantity, max_quantity)
    products, total = service.find_products_by_quantity_range(
        min_quantity, max_quantity, page, size
    )
    return ProductPageResponse.from_page(products, page, size, total)


@router.get(
    "/low-stock",
    response_model=list[ProductResponse],
    responses=BAD_REQUEST,
    summary="List low stock products",
    description="All products whose quantity is below the threshold."
)
def low_stock_products(
    threshold: Optional[int] = Query(
        None,
        ge=0,
        le=MAX_DB_INT,
        description="Quantity threshold (defaults to LOW_STOCK_THRESHOLD)",
    ),
    service: ProductService = Depends(get_product_service)
):
    if threshold is None:
        threshold = settings.LOW_STOCK_THRESHOLD
    return service.find_low_stock_products(threshold)


@router.get(
    "/filter",
    response_model=ProductPageResponse,
    responses=BAD_REQUEST,
    summary="Search products by multiple criteria",
    description="Combine name, price and quantity filters. Omitted filters match everything."
)
def filter_products(
    name: Optional[str] = Query(None, description="Text the name must contain"),
    min_price: Optional[Decimal] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[Decimal] = Query(None, alias="maxPrice", ge=0),
    min_quantity: Optional[int] = Query(None, alias="minQuantity", ge=0, le=MAX_DB_INT),
    max_quantity: Optional[int] = Query(None, alias="maxQuantity", ge=0, le=MAX_DB_INT),
    page: int = Query(0, le=MAX_DB_INT, description="Page number (0-based)"),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, le=MAX_DB_INT, description="Items per page"),
    service: ProductService = Depends(get_product_service)
):
    validate_page_params(page, size)
    validate_range("Price", min_price, max_price)
    validate_range("Quantity", min_quantity, max_quantity)
    products, total = service.search_products_by_criteria(
        name, min_price, max_price, min_quantity, max_quantity, page, size
    )
    return ProductPageResponse.from_page(products, page, size, total)


@router.get(
    "/sku/{sku}",
    response_model=ProductResponse,
    responses=NOT_FOUND,
    summary="Get product by SKU"
)
def get_product_by_sku(
    sku: str,
    service: ProductService = Depends(get_product_service)
):
    return service.get_product_by_sku(sku)


@router.get(
    "/sku/{sku}/exists",
    response_model=SkuExistsResponse,
    summary="Check whether a SKU is taken"
)
def sku_exists(
    sku: str,
    service: ProductService = Depends(get_product_service)
):
    return SkuExistsResponse(sku=sku, exists=service.exists_by_sku(sku))


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    responses={**BAD_REQUEST, **NOT_FOUND, **UNPROCESSABLE},
    summary="Get product by ID",
    description="Get a product, including the version required to update it."
)
def get_product(
    product_id: int = Path(..., le=MAX_DB_INT),
    service: ProductService = Depends(get_product_service)
):
    """Get a product by ID."""
    return service.get_product_by_id(product_id)


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    responses={**BAD_REQUEST, **NOT_FOUND, **CONFLICT, **UNPROCESSABLE},
    summary="Update a product",
    description="Replace a product's fields. Requires the version the client last read."
)
def update_product(
    *,
    product_id: int = Path(..., le=MAX_DB_INT),
    product_data: ProductUpdate,
    version: int = Query(..., ge=0, le=MAX_DB_INT, description="Current version of the product"),
    service: ProductService = Depends(get_product_service)
):
    """
    Update a product with optimistic locking.

    The update only succeeds if `version` still matches the stored product.
    Otherwise the response is 409 with errorCode PRODUCT_OPTIMISTIC_LOCK_ERROR
    and the client should refetch the product and retry.
    """
    return service.update_product(product_id, product_data, version)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**BAD_REQUEST, **NOT_FOUND},
    summary="Delete a product",
    description="Delete a product by ID."
)
def delete_product(
    product_id: int = Path(..., le=MAX_DB_INT),
    service: ProductService = Depends(get_product_service)
):
    """Delete a product."""
    service.delete_product(product_id)
    return None
