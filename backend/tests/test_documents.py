# Document store tests
#
# Tests for:
# - Creation with numbering, totals and initial status
# - Validation before any write
# - All-or-nothing header + lines insertion
# - Editing and deleting within editable statuses

from datetime import date

import pytest

from stockdocs.errors import ValidationError, InvalidStateError, NotFoundError, PersistenceError
from stockdocs.models import (
    Document,
    DocumentLine,
    DocumentSequence,
    DELIVERY_NOTE,
    PURCHASE_ORDER,
    RETURN_NOTE,
    INVOICE,
    QUOTE,
)
from stockdocs.time_utils import parse_iso_date
from stockdocs.services import document_service
from stockdocs.services.document_service import (
    create_document,
    update_document,
    delete_document,
    get_document,
    list_documents,
    tax_amount,
)

from factories import line


class TestCreateDocument:

    @pytest.mark.smoke
    def test_delivery_note_totals_and_status(self, db_session):
        """
        SCENARIO: One line, 2 x 100 at 20% VAT
        EXPECTED: subtotal 200, tax 40, total 240, status pending, BL number
        """
        doc = create_document(
            DELIVERY_NOTE,
            {"customer_name": "Client A", "document_date": "2025-01-10"},
            [{"sku": "A1", "name": "Article A1", "quantity": 2, "unit_price_cents": 100, "tax_rate_bps": 2000}],
        )

        assert doc.document_number == "BL-2025-0001"
        assert doc.status == "pending"
        assert doc.subtotal_cents == 200
        assert doc.tax_cents == 40
        assert doc.total_cents == 240
        assert len(doc.lines) == 1
        assert doc.lines[0].line_total_cents == 200
        assert doc.lines[0].tax_amount_cents == 40

    def test_initial_status_per_type(self, db_session):
        po = create_document(PURCHASE_ORDER, {"supplier_name": "Supplier"}, [line()])
        rn = create_document(RETURN_NOTE, {"counterparty_name": "Client", "reason": "Damaged"}, [line()])
        inv = create_document(INVOICE, {"counterparty_name": "Client"}, [line()])

        assert po.status == "pending"
        assert po.document_number.startswith("BG-")
        assert rn.status == "pending"
        assert rn.reason == "Damaged"
        assert inv.status == "draft"
        assert inv.source == "manual"

    def test_quote_number_status_and_validity(self, db_session):
        quote = create_document(
            QUOTE,
            {"customer_name": "Client", "document_date": "2025-01-10", "valid_until_date": "2025-02-09"},
            [line(quantity=3, unit_price_cents=1000, tax_rate_bps=2000)],
        )

        assert quote.document_number == "DV-2025-0001"
        assert quote.status == "draft"
        assert quote.valid_until == date(2025, 2, 9)
        assert quote.total_cents == 3600
        assert quote.to_dict()["valid_until"] == "2025-02-09"

    def test_document_date_defaults_to_today(self, db_session):
        doc = create_document(DELIVERY_NOTE, {"counterparty_name": "Client"}, [line()])
        assert isinstance(doc.document_date, date)
        assert doc.document_number.startswith(f"BL-{doc.document_date.year}-")

    def test_lines_keep_their_order(self, db_session):
        doc = create_document(
            DELIVERY_NOTE,
            {"counterparty_name": "Client"},
            [line(name="First"), line(name="Second"), line(name="Third")],
        )
        assert [l.name for l in doc.lines] == ["First", "Second", "Third"]
        assert [l.position for l in doc.lines] == [1, 2, 3]

    def test_empty_lines_rejected_and_nothing_written(self, db_session):
        with pytest.raises(ValidationError):
            create_document(DELIVERY_NOTE, {"counterparty_name": "Client"}, [])

        assert db_session.query(Document).count() == 0
        # Validation happens before a number is allocated
        assert db_session.query(DocumentSequence).count() == 0

    def test_missing_counterparty_rejected(self, db_session):
        with pytest.raises(ValidationError):
            create_document(DELIVERY_NOTE, {}, [line()])
        assert db_session.query(Document).count() == 0

    @pytest.mark.parametrize("bad_line", [
        {"name": "X", "quantity": 2.5},
        {"name": "X", "quantity": -1},
        {"name": "X", "quantity": 1, "unit_price_cents": "1e3"},
        {"quantity": 1},
    ])
    def test_invalid_line_rejected(self, db_session, bad_line):
        with pytest.raises(ValidationError):
            create_document(DELIVERY_NOTE, {"counterparty_name": "Client"}, [bad_line])
        assert db_session.query(Document).count() == 0

    def test_failed_line_insert_leaves_no_header(self, db_session, monkeypatch):
        """
        SCENARIO: A line row violates a NOT NULL constraint during insertion
        EXPECTED: PersistenceError, no header row, the number is not reissued
        """
        real_build_line = document_service._build_line

        def broken_build_line(position, item):
            built = real_build_line(position, item)
            built.name = None
            return built

        monkeypatch.setattr(document_service, "_build_line", broken_build_line)

        with pytest.raises(PersistenceError):
            create_document(DELIVERY_NOTE, {"counterparty_name": "Client", "document_date": "2025-01-10"}, [line()])

        assert db_session.query(Document).count() == 0
        assert db_session.query(DocumentLine).count() == 0

        monkeypatch.setattr(document_service, "_build_line", real_build_line)
        doc = create_document(DELIVERY_NOTE, {"counterparty_name": "Client", "document_date": "2025-01-10"}, [line()])
        assert doc.document_number == "BL-2025-0002"


class TestDocumentDates:

    @pytest.mark.parametrize("raw, expected", [
        ("2025-01-10", date(2025, 1, 10)),
        ("2025-01-10T23:30:00", date(2025, 1, 10)),
        ("2025-01-10T23:30:00Z", date(2025, 1, 10)),
        ("2025-01-10 08:00:00+02:00", date(2025, 1, 10)),
    ])
    def test_accepted_formats(self, raw, expected):
        assert parse_iso_date(raw) == expected

    @pytest.mark.parametrize("raw", ["2025-01-10xyz", "2025-01-1", "10/01/2025", "2025-01-10Tnoon"])
    def test_trailing_garbage_rejected(self, db_session, raw):
        with pytest.raises(ValidationError):
            create_document(DELIVERY_NOTE, {"counterparty_name": "Client", "document_date": raw}, [line()])
        assert db_session.query(Document).count() == 0


class TestTaxRounding:

    def test_half_cent_rounds_up(self):
        # 0.5 cent of tax rounds to 1
        assert tax_amount(5, 1000) == 1
        assert tax_amount(4, 1000) == 0
        assert tax_amount(333, 550) == 18


class TestUpdateDocument:

    def test_update_replaces_lines_and_totals(self, db_session):
        doc = create_document(DELIVERY_NOTE, {"counterparty_name": "Client"}, [line(quantity=1), line(quantity=2)])

        updated = update_document(
            doc.id,
            {"notes": "Leave at the back door"},
            [line(name="Only", quantity=3, unit_price_cents=1000, tax_rate_bps=1000)],
        )

        assert updated.notes == "Leave at the back door"
        assert [l.name for l in updated.lines] == ["Only"]
        assert updated.subtotal_cents == 3000
        assert updated.tax_cents == 300
        assert updated.total_cents == 3300
        assert db_session.query(DocumentLine).count() == 1

    def test_delivered_note_cannot_be_edited(self, db_session, inventory_api):
        from stockdocs.services.lifecycle_service import change_status

        doc = create_document(DELIVERY_NOTE, {"counterparty_name": "Client"}, [line()])
        change_status(doc.id, "delivered")

        with pytest.raises(InvalidStateError):
            update_document(doc.id, {}, [line(quantity=9)])

    def test_type_guard(self, db_session):
        doc = create_document(DELIVERY_NOTE, {"counterparty_name": "Client"}, [line()])
        with pytest.raises(NotFoundError):
            get_document(doc.id, INVOICE)


class TestDeleteAndList:

    def test_delete_pending_document(self, db_session):
        doc = create_document(DELIVERY_NOTE, {"counterparty_name": "Client"}, [line(), line()])
        delete_document(doc.id)

        assert db_session.query(Document).count() == 0
        assert db_session.query(DocumentLine).count() == 0

    def test_list_filters_by_type_status_and_search(self, db_session):
        create_document(DELIVERY_NOTE, {"counterparty_name": "Alpha SARL", "document_date": "2025-01-01"}, [line()])
        create_document(DELIVERY_NOTE, {"counterparty_name": "Beta", "document_date": "2025-02-01"}, [line()])
        create_document(INVOICE, {"counterparty_name": "Alpha SARL"}, [line()])

        docs, total = list_documents(DELIVERY_NOTE)
        assert total == 2
        assert [d.counterparty_name for d in docs] == ["Beta", "Alpha SARL"]

        docs, total = list_documents(DELIVERY_NOTE, search="alpha")
        assert total == 1

        docs, total = list_documents(DELIVERY_NOTE, from_date=date(2025, 1, 15))
        assert [d.counterparty_name for d in docs] == ["Beta"]

        docs, total = list_documents(DELIVERY_NOTE, status="delivered")
        assert total == 0
