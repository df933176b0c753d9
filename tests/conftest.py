import os

# Settings are read at import time; keep the application engine off PostgreSQL
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from product_inventory.main import app
from product_inventory.database import Base, get_db
from product_inventory.repositories.product_repository import SQLAlchemyProductRepository


# Create test database (SQLite in-memory for testing)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PRODUCTS_URL = "/api/v1/products"


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# Override the dependency
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="function")
def client():
    """Create test client with fresh database for each test."""
    # Create tables
    Base.metadata.create_all(bind=engine)

    with TestClient(app) as test_client:
        yield test_client

    # Drop tables after test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create database session for direct database access in tests."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def repository(db_session):
    """Product store bound to the test session."""
    return SQLAlchemyProductRepository(db_session)


@pytest.fixture
def product_payload():
    """A valid product body, as a client would send it."""
    return {
        "name": "Premium Laptop",
        "description": "High-performance laptop with 16GB RAM",
        "price": 999.99,
        "quantity": 10,
        "sku": "LAP-001",
        "weight": 2.5,
        "dimensions": "30x20x5",
    }


@pytest.fixture
def create_product(client, product_payload):
    """Create a product through the API, overriding payload fields as needed."""
    def _create(**overrides):
        response = client.post(PRODUCTS_URL, json={**product_payload, **overrides})
        assert response.status_code == 201, response.text
        return response.json()
    return _create
