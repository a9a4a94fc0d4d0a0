"""Tests for ProductDB CRUD operations."""

from datetime import date

import pytest

from freshtrack.db import PersistenceError, ProductDB


@pytest.fixture
def db(tmp_path):
    """Create a temporary ProductDB."""
    products = ProductDB(db_path=tmp_path / "test.db")
    yield products
    products.close()


def test_add_product(db):
    product = db.add_product(
        "alice", "Milk", date(2025, 12, 31), category="Dairy", notes="2% fat"
    )
    assert isinstance(product.id, int)
    assert product.user_id == "alice"
    assert product.name == "Milk"
    assert product.category == "Dairy"
    assert product.expiry_date == date(2025, 12, 31)
    assert product.notes == "2% fat"
    assert product.created_at


def test_add_product_defaults(db):
    product = db.add_product("alice", "Bread", date(2025, 1, 3))
    assert product.category == "Other"
    assert product.notes is None


def test_list_products_ordered_by_expiry(db):
    db.add_product("alice", "Yogurt", date(2025, 3, 1))
    db.add_product("alice", "Milk", date(2025, 1, 15))
    db.add_product("alice", "Cheese", date(2025, 2, 10))

    names = [p.name for p in db.list_products("alice")]
    assert names == ["Milk", "Cheese", "Yogurt"]


def test_list_products_scoped_to_user(db):
    db.add_product("alice", "Milk", date(2025, 1, 15))
    db.add_product("bob", "Eggs", date(2025, 1, 20))

    assert [p.name for p in db.list_products("alice")] == ["Milk"]
    assert [p.name for p in db.list_products("bob")] == ["Eggs"]


def test_list_products_empty(db):
    assert db.list_products("nobody") == []


def test_delete_product(db):
    milk = db.add_product("alice", "Milk", date(2025, 1, 15))
    db.add_product("alice", "Eggs", date(2025, 1, 20))

    assert db.delete_product("alice", milk.id) is True
    assert [p.name for p in db.list_products("alice")] == ["Eggs"]


def test_delete_product_of_other_user_is_refused(db):
    milk = db.add_product("alice", "Milk", date(2025, 1, 15))

    assert db.delete_product("bob", milk.id) is False
    assert len(db.list_products("alice")) == 1


def test_get_product(db):
    milk = db.add_product("alice", "Milk", date(2025, 1, 15))
    assert db.get_product("alice", milk.id) == milk
    assert db.get_product("bob", milk.id) is None


def test_empty_name_violates_constraint(db):
    with pytest.raises(PersistenceError):
        db.add_product("alice", "", date(2025, 1, 15))


def test_unopenable_database_raises_persistence_error(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    db = ProductDB(db_path=blocker / "test.db")
    with pytest.raises(PersistenceError):
        db.list_products("alice")
