"""Tests for ProductStore.

These tests verify:
- create assigns ids and ignores caller-supplied ones
- fetch distinguishes missing rows from other failures
- update/delete report affected rows and tolerate missing ids
- driver failures surface as StoreError
"""

import pytest

from product_service import NotFoundError, Product, StoreError, db


def make_product(name="Widget", quantity=5, price=9.99, **kwargs):
    return Product(name=name, quantity=quantity, price=price, **kwargs)


class TestCreateAndFetch:
    """Round trips through create and fetch."""

    def test_create_assigns_id(self, store):
        product = make_product()

        new_id = store.create(product)

        assert isinstance(new_id, int)
        assert new_id >= 1
        assert product.id == new_id

    def test_fetch_returns_created_fields(self, store):
        new_id = store.create(make_product(name="Gadget", quantity=3, price=19.5))

        fetched = store.fetch(new_id)

        assert fetched.to_dict() == {"id": new_id, "name": "Gadget", "quantity": 3, "price": 19.5}

    def test_create_ignores_supplied_id(self, store):
        first = store.create(make_product())
        second = store.create(make_product(name="Other", id=first))

        assert second != first
        assert store.fetch(first).name == "Widget"
        assert store.fetch(second).name == "Other"

    def test_fetch_missing_raises_not_found(self, store):
        with pytest.raises(NotFoundError) as exc_info:
            store.fetch(999999)

        assert exc_info.value.message == "Product not found"

    def test_not_found_is_a_store_error(self):
        assert issubclass(NotFoundError, StoreError)

    def test_negative_quantity_and_price_are_stored(self, store):
        new_id = store.create(make_product(quantity=-2, price=-1.25))

        fetched = store.fetch(new_id)
        assert fetched.quantity == -2
        assert fetched.price == -1.25


class TestListAll:

    def test_empty_table_returns_empty_list(self, store):
        assert store.list_all() == []

    def test_returns_every_created_product(self, store):
        names = ["a", "b", "c"]
        for name in names:
            store.create(make_product(name=name))

        products = store.list_all()

        assert len(products) == 3
        assert sorted(p.name for p in products) == names


class TestUpdate:

    def test_update_replaces_fields_and_keeps_id(self, store):
        new_id = store.create(make_product())

        affected = store.update(new_id, make_product(name="Renamed", quantity=7, price=1.5))

        assert affected == 1
        fetched = store.fetch(new_id)
        assert fetched.to_dict() == {"id": new_id, "name": "Renamed", "quantity": 7, "price": 1.5}

    def test_update_missing_id_is_a_no_op(self, store):
        existing = store.create(make_product())

        affected = store.update(424242, make_product(name="Ghost"))

        assert affected == 0
        assert store.fetch(existing).name == "Widget"
        assert len(store.list_all()) == 1


class TestDelete:

    def test_delete_removes_row(self, store):
        new_id = store.create(make_product())

        assert store.delete(new_id) == 1

        with pytest.raises(NotFoundError):
            store.fetch(new_id)

    def test_delete_missing_id_is_a_no_op(self, store):
        store.create(make_product())

        assert store.delete(424242) == 0
        assert len(store.list_all()) == 1


class TestStoreFailures:
    """Driver errors are wrapped in StoreError."""

    def test_list_without_table_raises_store_error(self, store):
        db.drop_all()

        with pytest.raises(StoreError) as exc_info:
            store.list_all()

        assert not isinstance(exc_info.value, NotFoundError)
        assert "products" in exc_info.value.message

    def test_create_without_table_raises_store_error(self, store):
        db.drop_all()

        with pytest.raises(StoreError):
            store.create(make_product())

    def test_session_usable_after_failure(self, store):
        db.drop_all()
        with pytest.raises(StoreError):
            store.fetch(1)

        db.create_all()
        assert store.list_all() == []

    def test_values_are_bound_not_interpolated(self, store):
        name = "x'); DROP TABLE products; --"
        new_id = store.create(make_product(name=name))

        assert store.fetch(new_id).name == name
        assert len(store.list_all()) == 1
