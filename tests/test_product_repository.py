"""Tests for the SQLAlchemy product store against a real session."""
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from product_inventory.database import Base
from product_inventory.models.product import Product
from product_inventory.repositories.base import RecordNotFound, UniqueViolation, VersionMismatch
from product_inventory.repositories.product_repository import SQLAlchemyProductRepository


@pytest.fixture
def session_factory(tmp_path):
    """Sessions on separate connections to a file database, like two app workers."""
    engine = create_engine(f"sqlite:///{tmp_path / 'products.db'}")
    Base.metadata.create_all(bind=engine)

    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)

    engine.dispose()


def product_fields(**overrides):
    fields = {
        "name": "Premium Laptop",
        "description": "High-performance laptop with 16GB RAM",
        "price": Decimal("999.99"),
        "quantity": 10,
        "sku": "LAP-001",
        "weight": Decimal("2.50"),
        "dimensions": "30x20x5",
    }
    fields.update(overrides)
    return fields


def test_insert_sets_server_managed_fields(repository):
    product = repository.insert(product_fields())

    assert product.id > 0
    assert product.version == 0
    assert product.created_at is not None
    assert product.created_at == product.updated_at
    assert product.price == Decimal("999.99")


def test_insert_duplicate_sku(repository, db_session):
    repository.insert(product_fields())

    with pytest.raises(UniqueViolation) as exc_info:
        repository.insert(product_fields(name="Copy"))

    assert exc_info.value.field == "sku"
    # The failed insert was rolled back and the session is usable
    assert db_session.query(Product).count() == 1


def test_find_by_sku_and_exists(repository):
    repository.insert(product_fields())

    assert repository.find_by_sku("LAP-001").name == "Premium Laptop"
    assert repository.find_by_sku("LAP-999") is None
    assert repository.exists_by_sku("LAP-001") is True
    assert repository.exists_by_sku("LAP-999") is False


def test_update_with_version(repository):
    product = repository.insert(product_fields())
    created_at = product.created_at
    first_updated_at = product.updated_at

    updated = repository.update_with_version(
        product.id, product_fields(price=Decimal("1099.99")), expected_version=0
    )

    assert updated.version == 1
    assert updated.price == Decimal("1099.99")
    assert updated.created_at == created_at
    assert updated.updated_at > first_updated_at


def test_update_with_stale_version(repository):
    product = repository.insert(product_fields())
    # Another writer gets there first
    repository.update_with_version(product.id, product_fields(quantity=9), 0)

    with pytest.raises(VersionMismatch) as exc_info:
        repository.update_with_version(product.id, product_fields(quantity=1), 0)

    assert exc_info.value.expected_version == 0
    assert exc_info.value.actual_version == 1
    stored = repository.find_by_id(product.id)
    assert stored.quantity == 9
    assert stored.version == 1


def test_update_missing_record(repository):
    with pytest.raises(RecordNotFound):
        repository.update_with_version(12345, product_fields(), 0)


def test_update_onto_taken_sku(repository):
    repository.insert(product_fields(sku="LAP-001"))
    other = repository.insert(product_fields(sku="LAP-002"))

    with pytest.raises(UniqueViolation):
        repository.update_with_version(other.id, product_fields(sku="LAP-001"), 0)

    stored = repository.find_by_id(other.id)
    assert stored.sku == "LAP-002"
    assert stored.version == 0


def test_concurrent_updates_from_same_version(session_factory):
    first_session = session_factory()
    second_session = session_factory()
    try:
        first = SQLAlchemyProductRepository(first_session)
        second = SQLAlchemyProductRepository(second_session)
        product_id = first.insert(product_fields()).id

        # Both writers read version 0 before either one writes
        assert first.find_by_id(product_id).version == 0
        assert second.find_by_id(product_id).version == 0

        updated = []
        mismatches = []
        for store, quantity in ((first, 9), (second, 1)):
            try:
                updated.append(
                    store.update_with_version(product_id, product_fields(quantity=quantity), 0)
                )
            except VersionMismatch as e:
                mismatches.append(e)
    finally:
        first_session.close()
        second_session.close()

    assert len(updated) == 1
    assert len(mismatches) == 1
    assert mismatches[0].actual_version == 1

    check_session = session_factory()
    try:
        stored = SQLAlchemyProductRepository(check_session).find_by_id(product_id)
        assert stored.version == 1
        assert stored.quantity == 9
    finally:
        check_session.close()


def test_update_of_product_deleted_after_commit(repository, db_session, monkeypatch):
    product = repository.insert(product_fields())
    commit = repository._commit

    def commit_then_delete(sku=None):
        commit(sku)
        # Another writer removes the row before it is read back
        db_session.query(Product).filter(Product.id == product.id).delete()
        db_session.commit()

    monkeypatch.setattr(repository, "_commit", commit_then_delete)

    with pytest.raises(RecordNotFound):
        repository.update_with_version(product.id, product_fields(quantity=5), 0)


def test_delete(repository):
    product = repository.insert(product_fields())

    repository.delete(product.id)

    assert repository.find_by_id(product.id) is None
    with pytest.raises(RecordNotFound):
        repository.delete(product.id)


def test_list_sorted_and_paged(repository):
    for index, price in enumerate(["30.00", "10.00", "20.00", "40.00"]):
        repository.insert(product_fields(sku=f"SKU-{index}", price=Decimal(price)))

    items, total = repository.list(page=1, size=2, sort_field="price", direction="asc")

    assert total == 4
    assert [item.price for item in items] == [Decimal("30.00"), Decimal("40.00")]


def test_find_by_criteria_ignores_missing_predicates(repository):
    repository.insert(product_fields(sku="A-1", name="Red Chair", quantity=5))
    repository.insert(product_fields(sku="A-2", name="Blue Chair", quantity=50))
    repository.insert(product_fields(sku="A-3", name="Red Table", quantity=5))

    items, total = repository.find_by_criteria(
        name="chair", min_price=None, max_price=None,
        min_quantity=None, max_quantity=10, page=0, size=10,
    )

    assert total == 1
    assert items[0].sku == "A-1"


def test_find_low_stock(repository):
    repository.insert(product_fields(sku="A-1", quantity=0))
    repository.insert(product_fields(sku="A-2", quantity=5))
    repository.insert(product_fields(sku="A-3", quantity=4))

    assert [p.sku for p in repository.find_low_stock(5)] == ["A-1", "A-3"]
