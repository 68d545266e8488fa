from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from conftest import OWNER_ID, TODAY, make_invoice_data
from portal.errors import DependencyError, NotFoundError, ValidationError
from portal.models.invoice import Invoice
from portal.models.invoice_item import InvoiceItem
from portal.schemas.invoice import LineItemInput
from portal.services import invoice_service
from portal.services.invoice_service import compute_amount, normalize_line_items
from portal.utils.money import quantize_money


def _items(*rows):
    return [LineItemInput(description=d, quantity=q, unit_price=p) for d, q, p in rows]


class TestNormalizeLineItems:
    def test_blank_rows_dropped_and_renumbered(self):
        lines = normalize_line_items(_items(
            ("Logo on kit", "1", "500"),
            ("   ", "abc", "-3"),
            ("Social posts", "4", "125.50"),
        ))

        assert [line.line_no for line in lines] == [1, 2]
        assert [line.description for line in lines] == ["Logo on kit", "Social posts"]

    def test_all_blank_is_empty_invoice(self):
        with pytest.raises(ValidationError) as exc:
            normalize_line_items(_items(("", "1", "1"), (None, "2", "2")))
        assert exc.value.code == "EmptyInvoice"

    @pytest.mark.parametrize("quantity", ["0", "-1", "", None, "ten", "Infinity", "NaN"])
    def test_invalid_quantity(self, quantity):
        with pytest.raises(ValidationError) as exc:
            normalize_line_items(_items(("Appearance", quantity, "100")))
        assert exc.value.code == "InvalidQuantity"
        assert exc.value.message.startswith("Line 1:")

    @pytest.mark.parametrize("unit_price", ["-0.01", "", None, "free", "Infinity"])
    def test_invalid_unit_price(self, unit_price):
        with pytest.raises(ValidationError) as exc:
            normalize_line_items(_items(("Appearance", "1", unit_price)))
        assert exc.value.code == "InvalidUnitPrice"

    def test_error_names_renumbered_line(self):
        with pytest.raises(ValidationError) as exc:
            normalize_line_items(_items(("", "1", "1"), ("Ok", "1", "1"), ("Bad", "0", "1")))
        assert exc.value.message.startswith("Line 2:")

    def test_zero_unit_price_is_allowed(self):
        lines = normalize_line_items(_items(("Comp entry", "1", "0")))
        assert lines[0].unit_price == Decimal("0")


def test_compute_amount():
    lines = normalize_line_items(_items(("A", "2", "150"), ("B", "3", "33.25")))
    assert compute_amount(lines) == Decimal("399.75")


def test_values_rounded_to_cents_before_checks():
    lines = normalize_line_items(_items(("A", "1.5", "0.333"), ("B", "2.005", "10")))

    assert [(line.quantity, line.unit_price) for line in lines] == [
        (Decimal("1.50"), Decimal("0.33")),
        (Decimal("2.01"), Decimal("10.00")),
    ]
    assert compute_amount(lines) == Decimal("20.60")


def test_quantity_rounding_to_zero_is_invalid():
    with pytest.raises(ValidationError) as exc:
        normalize_line_items(_items(("Tiny", "0.001", "100")))
    assert exc.value.code == "InvalidQuantity"


def test_compute_amount_accepts_thousands_separators():
    lines = normalize_line_items(_items(("Retainer", "1", "1,250.50")))
    assert compute_amount(lines) == Decimal("1250.50")


class TestCreateInvoice:
    def test_create_persists_items_and_amount(self, db, workspace, sponsor):
        data = make_invoice_data(
            invoice_number="INV-001",
            sponsor_id=sponsor.id,
            items=[
                {"description": "Kit placement", "quantity": "2", "unit_price": "150"},
                {"description": "", "quantity": "", "unit_price": ""},
                {"description": "Podcast read", "quantity": "1", "unit_price": "99.99"},
            ],
        )

        invoice = invoice_service.create_invoice(db, workspace.id, OWNER_ID, data, TODAY)

        assert invoice.amount == Decimal("399.99")
        assert invoice.created_by == OWNER_ID
        assert invoice.status == "draft"
        assert invoice.sent_date is None
        items = invoice_service.sorted_items(invoice)
        assert [(i.line_no, i.description) for i in items] == [(1, "Kit placement"), (2, "Podcast read")]

    def test_amount_matches_stored_items(self, db, workspace):
        data = make_invoice_data(items=[
            {"description": "Clinic hours", "quantity": "1.5", "unit_price": "0.333"},
            {"description": "Banner", "quantity": "2", "unit_price": "19.999"},
        ])
        invoice_id = invoice_service.create_invoice(db, workspace.id, OWNER_ID, data, TODAY).id

        db.expire_all()
        stored = db.query(Invoice).filter(Invoice.id == invoice_id).one()
        items = [(Decimal(i.quantity), Decimal(i.unit_price)) for i in stored.items]

        assert items == [(Decimal("1.50"), Decimal("0.33")), (Decimal("2.00"), Decimal("20.00"))]
        assert all(quantity > 0 for quantity, _ in items)
        assert Decimal(stored.amount) == quantize_money(sum(q * p for q, p in items))
        assert Decimal(stored.amount) == Decimal("40.50")

    def test_create_sent_backfills_sent_date(self, db, workspace):
        data = make_invoice_data(status="sent")

        invoice = invoice_service.create_invoice(db, workspace.id, OWNER_ID, data, TODAY)

        assert invoice.sent_date == TODAY
        assert invoice.paid_date is None

    def test_create_validation_writes_nothing(self, db, workspace):
        data = make_invoice_data(items=[{"description": "Bad", "quantity": "0", "unit_price": "10"}])

        with pytest.raises(ValidationError):
            invoice_service.create_invoice(db, workspace.id, OWNER_ID, data, TODAY)

        assert db.query(Invoice).count() == 0
        assert db.query(InvoiceItem).count() == 0

    def test_create_unknown_sponsor(self, db, workspace):
        with pytest.raises(NotFoundError):
            invoice_service.create_invoice(db, workspace.id, OWNER_ID, make_invoice_data(sponsor_id=999), TODAY)


class TestUpdateInvoice:
    def _create(self, db, workspace, **fields):
        data = make_invoice_data(
            items=[
                {"description": "Old A", "quantity": "1", "unit_price": "100"},
                {"description": "Old B", "quantity": "1", "unit_price": "50"},
            ],
            **fields,
        )
        return invoice_service.create_invoice(db, workspace.id, OWNER_ID, data, TODAY)

    def test_update_replaces_items(self, db, workspace):
        invoice = self._create(db, workspace, invoice_number="INV-9")
        data = make_invoice_data(
            invoice_number="INV-9",
            items=[{"description": "New only", "quantity": "3", "unit_price": "10"}],
        )

        updated = invoice_service.update_invoice(db, workspace.id, invoice.id, data, TODAY)

        assert updated.amount == Decimal("30.00")
        assert [(i.line_no, i.description) for i in updated.items] == [(1, "New only")]
        assert db.query(InvoiceItem).filter(InvoiceItem.invoice_id == invoice.id).count() == 1

    def test_update_reorders_without_line_number_collision(self, db, workspace):
        invoice = self._create(db, workspace)
        data = make_invoice_data(items=[
            {"description": "Old B", "quantity": "1", "unit_price": "50"},
            {"description": "Old A", "quantity": "1", "unit_price": "100"},
        ])

        updated = invoice_service.update_invoice(db, workspace.id, invoice.id, data, TODAY)

        assert [i.description for i in invoice_service.sorted_items(updated)] == ["Old B", "Old A"]

    def test_invoice_number_cannot_change(self, db, workspace):
        invoice = self._create(db, workspace, invoice_number="INV-1")

        with pytest.raises(ValidationError) as exc:
            invoice_service.update_invoice(db, workspace.id, invoice.id, make_invoice_data(invoice_number="INV-2"), TODAY)
        assert exc.value.code == "InvoiceNumberImmutable"

    def test_blank_invoice_number_keeps_existing(self, db, workspace):
        invoice = self._create(db, workspace, invoice_number="INV-1")

        updated = invoice_service.update_invoice(db, workspace.id, invoice.id, make_invoice_data(invoice_number=" "), TODAY)

        assert updated.invoice_number == "INV-1"

    def test_number_can_be_assigned_once(self, db, workspace):
        invoice = self._create(db, workspace)

        updated = invoice_service.update_invoice(db, workspace.id, invoice.id, make_invoice_data(invoice_number="INV-7"), TODAY)

        assert updated.invoice_number == "INV-7"

    def test_failed_item_insert_keeps_previous_items(self, db, workspace, monkeypatch):
        invoice = self._create(db, workspace)
        invoice_id = invoice.id
        original_flush = db.flush
        calls = {"count": 0}

        def flaky_flush(*args, **kwargs):
            calls["count"] += 1
            if calls["count"] == 2:
                raise OperationalError("INSERT INTO invoice_items", {}, Exception("disk I/O error"))
            return original_flush(*args, **kwargs)

        monkeypatch.setattr(db, "flush", flaky_flush)
        data = make_invoice_data(items=[{"description": "Replacement", "quantity": "9", "unit_price": "9"}])

        with pytest.raises(DependencyError):
            invoice_service.update_invoice(db, workspace.id, invoice_id, data, TODAY)

        monkeypatch.setattr(db, "flush", original_flush)
        stored = db.query(Invoice).filter(Invoice.id == invoice_id).one()
        assert stored.amount == Decimal("150.00")
        assert sorted(i.description for i in stored.items) == ["Old A", "Old B"]

    def test_edit_to_paid_backfills_dates(self, db, workspace):
        invoice = self._create(db, workspace)

        updated = invoice_service.update_invoice(db, workspace.id, invoice.id, make_invoice_data(status="paid"), TODAY)

        assert updated.sent_date == TODAY
        assert updated.paid_date == TODAY

    def test_update_other_workspace_is_not_found(self, db, workspace):
        invoice = self._create(db, workspace)

        with pytest.raises(NotFoundError):
            invoice_service.update_invoice(db, workspace.id + 1, invoice.id, make_invoice_data(), TODAY)


class TestStatusAndListing:
    def test_quick_status_mark_sent_then_paid(self, db, workspace):
        invoice = invoice_service.create_invoice(db, workspace.id, OWNER_ID, make_invoice_data(), TODAY)

        invoice_service.set_invoice_status(db, workspace.id, invoice.id, "sent", date(2026, 3, 1))
        paid = invoice_service.set_invoice_status(db, workspace.id, invoice.id, "paid", TODAY)

        assert paid.sent_date == date(2026, 3, 1)
        assert paid.paid_date == TODAY

    def test_list_hides_closed_unless_show_all(self, db, workspace):
        open_invoice = invoice_service.create_invoice(db, workspace.id, OWNER_ID, make_invoice_data(status="sent"), TODAY)
        paid = invoice_service.create_invoice(db, workspace.id, OWNER_ID, make_invoice_data(status="paid"), TODAY)
        void = invoice_service.create_invoice(db, workspace.id, OWNER_ID, make_invoice_data(status="void"), TODAY)

        default_ids = {i.id for i in invoice_service.list_invoices(db, workspace.id)}
        all_ids = {i.id for i in invoice_service.list_invoices(db, workspace.id, show_all=True)}

        assert default_ids == {open_invoice.id}
        assert all_ids == {open_invoice.id, paid.id, void.id}

    def test_delete_removes_items(self, db, workspace):
        invoice = invoice_service.create_invoice(db, workspace.id, OWNER_ID, make_invoice_data(), TODAY)

        invoice_service.delete_invoice(db, workspace.id, invoice.id)

        assert db.query(Invoice).count() == 0
        assert db.query(InvoiceItem).count() == 0
