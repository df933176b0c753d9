from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from product_inventory.database import get_db

router = APIRouter(prefix="/health", tags=["Health"])


@router.get(
    "/",
    summary="Health check",
    description="Basic health check endpoint."
)
def health_check():
    """Simple health check."""
    return {"status": "healthy"}


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check if the database is reachable."
)
def readiness_check(response: Response, db: Session = Depends(get_db)):
    """
    Readiness check for the product store.

    Responds 503 while the database cannot answer a trivial query.
    """
    checks = {"database": False}

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = True
    except SQLAlchemyError as e:
        checks["database_error"] = str(e)

    if not checks["database"]:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return {
        "status": "ready" if checks["database"] else "not_ready",
        "checks": checks
    }
