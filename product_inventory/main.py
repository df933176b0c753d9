from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from product_inventory.config import get_settings
from product_inventory.database import engine, Base
from product_inventory.api import products, health
from product_inventory.api.errors import register_exception_handlers

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup
    logger.info("Starting up application...")

    # Create database tables
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    engine.dispose()


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="""
    A catalog API for managing products backed by a relational database.

    - **Product Management**: Create, read, update and delete products
    - **Listing & Search**: 0-based pagination, sorting by name, SKU or price,
      name search, price/quantity ranges and low-stock reports

    ## Features

    ### Optimistic Locking
    Every product carries a `version`. Updates must send the version they last
    read as the `version` query parameter; if another client updated the
    product in the meantime, the request fails with 409
    `PRODUCT_OPTIMISTIC_LOCK_ERROR` and nothing is written.

    ### Unique SKUs
    SKUs are unique across the catalog. Duplicates are rejected with 409
    `PRODUCT_CONFLICT`, including when two requests race to use the same SKU.

    ### Errors
    Failures share one JSON shape: `timestamp`, `status`, `error`, `message`,
    `errorCode`, `details`, `path` and, for validation failures, `errors`.
    """,
    version=settings.APP_VERSION,
    contact={
        "name": "API Support",
        "email": "support@example.com"
    },
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT"
    },
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include API routers
app.include_router(health.router, prefix="/api/v1")
app.include_router(products.router, prefix="/api/v1")


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/api/v1/health"
    }
