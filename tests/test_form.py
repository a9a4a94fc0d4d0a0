"""Tests for ProductFormController validation, submission and scan hand-off."""

from datetime import date
from unittest.mock import MagicMock

import pytest

from freshtrack.auth import UserSession
from freshtrack.db import PersistenceError, ProductDB
from freshtrack.draft import DraftStateCoordinator
from freshtrack.form import (
    InvalidCategory,
    MissingExpiry,
    MissingName,
    ProductFormController,
    Unauthenticated,
    parse_expiry,
)
from freshtrack.models import ProductFields, ScanKind, ScanResult
from freshtrack.navigation import Navigator, View
from freshtrack.notify import Notifier


@pytest.fixture
def session(tmp_path):
    s = UserSession(tmp_path / "session.json")
    s.sign_in("alice")
    return s


@pytest.fixture
def db(tmp_path):
    products = ProductDB(db_path=tmp_path / "test.db")
    yield products
    products.close()


@pytest.fixture
def navigator():
    return Navigator()


@pytest.fixture
def drafts(session):
    return DraftStateCoordinator(session.storage)


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def make_form(session, db, drafts, navigator, notifier):
    def _make(**kwargs):
        return ProductFormController(session, db, drafts, navigator, notifier, **kwargs)

    return _make


class TestSubmit:
    def test_submit_stores_normalized_row(self, make_form, db):
        form = make_form()
        product = form.submit(
            ProductFields(name="  Milk  ", category="Dairy", expiry_date="2025-12-31", notes="   ")
        )

        rows = db.list_products("alice")
        assert rows == [product]
        assert product.name == "Milk"
        assert product.category == "Dairy"
        assert product.expiry_date == date(2025, 12, 31)
        assert product.notes is None

    def test_submit_keeps_trimmed_notes(self, make_form):
        product = make_form().submit(
            ProductFields(name="Eggs", expiry_date="2025-01-20", notes=" free range ")
        )
        assert product.notes == "free range"

    def test_submit_clears_draft(self, make_form, drafts):
        drafts.save(ProductFields(name="Eggs"))
        make_form().submit(ProductFields(name="Eggs", expiry_date="2025-01-20"))
        assert not drafts.exists

    def test_submit_notifies_and_calls_back(self, make_form, notifier):
        added = MagicMock()
        form = make_form(on_product_added=added)
        product = form.submit(ProductFields(name="Eggs", expiry_date="2025-01-20"))
        added.assert_called_once_with(product)
        assert notifier.last.level == "success"
        assert form.fields == ProductFields()

    def test_missing_name(self, make_form, db, notifier):
        form = make_form()
        fields = ProductFields(name="", category="Dairy", expiry_date="2025-12-31", notes="n")

        with pytest.raises(MissingName):
            form.submit(fields)

        assert db.list_products("alice") == []
        assert form.fields == ProductFields(
            name="", category="Dairy", expiry_date="2025-12-31", notes="n"
        )
        assert notifier.last.level == "error"

    def test_whitespace_name_is_missing(self, make_form):
        with pytest.raises(MissingName):
            make_form().submit(ProductFields(name="   ", expiry_date="2025-12-31"))

    @pytest.mark.parametrize("expiry", ["", "  ", "31/12/2025", "2025-02-30", "tomorrow"])
    def test_missing_or_invalid_expiry(self, make_form, db, expiry):
        form = make_form()
        with pytest.raises(MissingExpiry):
            form.submit(ProductFields(name="Milk", expiry_date=expiry))
        assert form.fields.expiry_date == expiry
        assert db.list_products("alice") == []

    def test_unauthenticated_checked_first(self, make_form, session, db):
        session.sign_out()
        form = make_form()
        with pytest.raises(Unauthenticated):
            form.submit(ProductFields())
        assert db.list_products("alice") == []

    def test_name_checked_before_expiry(self, make_form):
        with pytest.raises(MissingName):
            make_form().submit(ProductFields(name="", expiry_date=""))

    def test_invalid_category(self, make_form):
        with pytest.raises(InvalidCategory):
            make_form().submit(
                ProductFields(name="Milk", category="Spaceship", expiry_date="2025-12-31")
            )

    def test_persistence_error_keeps_fields(self, session, drafts, navigator, notifier):
        broken = MagicMock()
        broken.add_product.side_effect = PersistenceError("disk full")
        form = ProductFormController(session, broken, drafts, navigator, notifier)
        fields = ProductFields(name="Milk", expiry_date="2025-12-31")
        drafts.save(fields)

        with pytest.raises(PersistenceError):
            form.submit(fields)

        assert form.fields == fields
        assert drafts.exists


class TestScanHandOff:
    def test_handle_scan_saves_draft_then_navigates(self, make_form, drafts, navigator):
        form = make_form()
        form.set_field("name", "Milk")

        form.handle_scan(ScanKind.EXPIRY_DATE)

        assert drafts.load() == ProductFields(name="Milk")
        assert navigator.current is View.SCANNER
        assert navigator.scan_request.kind is ScanKind.EXPIRY_DATE

    def test_mount_merges_result_over_draft(self, make_form, drafts, navigator):
        drafts.save(ProductFields(name="Milk", expiry_date="2020-01-01"))
        navigator.open_scanner(ScanKind.EXPIRY_DATE)
        navigator.return_to_form(ScanResult(ScanKind.EXPIRY_DATE, "2025-12-31"))

        form = make_form()
        result = form.mount()

        assert result.text == "2025-12-31"
        assert form.fields == ProductFields(name="Milk", expiry_date="2025-12-31")
        assert not drafts.exists

    def test_mount_is_read_once(self, make_form, drafts, navigator):
        navigator.open_scanner(ScanKind.PRODUCT_NAME)
        navigator.return_to_form(ScanResult(ScanKind.PRODUCT_NAME, "Milk"))

        form = make_form()
        form.mount()
        form.set_field("name", "Oat Milk")
        assert form.mount() is None
        assert form.fields.name == "Oat Milk"

    def test_mount_without_result_restores_draft(self, make_form, drafts, navigator):
        drafts.save(ProductFields(name="Milk", notes="shelf"))
        navigator.open_scanner(ScanKind.PRODUCT_NAME)
        navigator.return_to_form()

        form = make_form()
        assert form.mount() is None
        assert form.fields == ProductFields(name="Milk", notes="shelf")
        assert not drafts.exists

    def test_set_unknown_field(self, make_form):
        with pytest.raises(AttributeError):
            make_form().set_field("price", "3")


def test_parse_expiry():
    assert parse_expiry("2025-12-31") == date(2025, 12, 31)
    assert parse_expiry(" 2025-12-31 ") == date(2025, 12, 31)
    assert parse_expiry("") is None
    assert parse_expiry("12/2025") is None
