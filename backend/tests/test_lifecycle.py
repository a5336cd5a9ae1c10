# Status lifecycle tests
#
# Tests for:
# - Allowed / ignored transitions per document type
# - Stock side effects of delivery and return notes
# - Invoice payment data

from datetime import date

import pytest

from stockdocs.errors import ValidationError, InvalidStateError
from stockdocs.models import DELIVERY_NOTE, RETURN_NOTE, INVOICE, QUOTE, PURCHASE_ORDER
from stockdocs.services.document_service import create_document, update_document
from stockdocs.services.lifecycle_service import change_status, can_transition, derive_purchase_order_status

from factories import line


def _delivery_note(*lines):
    return create_document(DELIVERY_NOTE, {"counterparty_name": "Client"}, list(lines))


class TestDeliveryNoteLifecycle:

    @pytest.mark.smoke
    @pytest.mark.inventory
    def test_deliver_then_cancel_nets_to_zero(self, db_session, inventory_api):
        """
        SCENARIO: Deliver a note, then cancel it
        EXPECTED: Stock goes down by the line quantities, then back to its start value
        """
        inventory_api.add_product("10", stock=50)
        inventory_api.add_product("11", stock=5)
        doc = _delivery_note(line(product_id="10", quantity=3), line(product_id="11", quantity=2))

        result = change_status(doc.id, "delivered")
        assert result.changed is True
        assert result.document.status == "delivered"
        assert result.reconciliation.updated_count == 2
        assert result.reconciliation.error_count == 0
        assert inventory_api.stock("10") == 47
        assert inventory_api.stock("11") == 3

        result = change_status(doc.id, "cancelled")
        assert result.document.status == "cancelled"
        assert result.reconciliation.operation == "restore"
        assert inventory_api.stock("10") == 50
        assert inventory_api.stock("11") == 5

    @pytest.mark.inventory
    def test_reduce_never_goes_below_zero(self, db_session, inventory_api):
        inventory_api.add_product("10", stock=1)
        doc = _delivery_note(line(product_id="10", quantity=4))

        change_status(doc.id, "delivered")
        assert inventory_api.stock("10") == 0

    @pytest.mark.inventory
    def test_cancelling_pending_note_does_not_touch_stock(self, db_session, inventory_api):
        inventory_api.add_product("10", stock=8)
        doc = _delivery_note(line(product_id="10", quantity=4))

        result = change_status(doc.id, "cancelled")
        assert result.changed is True
        assert result.reconciliation is None
        assert inventory_api.calls == []

    def test_same_status_is_a_noop(self, db_session, inventory_api):
        inventory_api.add_product("10", stock=8)
        doc = _delivery_note(line(product_id="10", quantity=4))
        change_status(doc.id, "delivered")
        calls = len(inventory_api.calls)

        result = change_status(doc.id, "delivered")
        assert result.changed is False
        assert len(inventory_api.calls) == calls
        assert inventory_api.stock("10") == 4

    def test_undefined_transition_is_a_noop(self, db_session, inventory_api):
        doc = _delivery_note(line())
        change_status(doc.id, "cancelled")

        result = change_status(doc.id, "delivered")
        assert result.changed is False
        assert result.document.status == "cancelled"

    def test_unknown_status_rejected(self, db_session):
        doc = _delivery_note(line())
        with pytest.raises(ValidationError):
            change_status(doc.id, "shipped")

    @pytest.mark.inventory
    def test_stock_failure_keeps_status_change(self, db_session, inventory_api):
        inventory_api.add_product("10", stock=10)
        inventory_api.add_product("12", stock=10)
        inventory_api.failing.add("11")
        doc = _delivery_note(
            line(product_id="10", quantity=1),
            line(product_id="11", quantity=1),
            line(product_id="12", quantity=1),
        )

        result = change_status(doc.id, "delivered")

        assert result.document.status == "delivered"
        assert result.reconciliation.updated_count == 2
        assert result.reconciliation.error_count == 1
        assert "Product 11" in result.reconciliation.errors[0]
        assert "(1 error(s))" in result.message
        assert inventory_api.stock("12") == 9


class TestReturnNoteLifecycle:

    @pytest.mark.inventory
    def test_processing_restores_stock(self, db_session, inventory_api):
        inventory_api.add_product("10", stock=2)
        doc = create_document(RETURN_NOTE, {"counterparty_name": "Client"}, [line(product_id="10", quantity=3)])

        result = change_status(doc.id, "processed")

        assert result.document.status == "processed"
        assert inventory_api.stock("10") == 5

    def test_processed_return_is_final(self, db_session, inventory_api):
        doc = create_document(RETURN_NOTE, {"counterparty_name": "Client"}, [line()])
        change_status(doc.id, "processed")

        assert change_status(doc.id, "cancelled").changed is False


class TestInvoiceLifecycle:

    def test_paid_requires_payment_method(self, db_session):
        inv = create_document(INVOICE, {"counterparty_name": "Client"}, [line()])
        with pytest.raises(ValidationError):
            change_status(inv.id, "paid")

    def test_paid_records_method_and_date(self, db_session):
        inv = create_document(INVOICE, {"counterparty_name": "Client"}, [line()])

        result = change_status(inv.id, "paid", payment_method="Virement bancaire", paid_date="2025-01-10")

        assert result.document.status == "paid"
        assert result.document.payment_method == "transfer"
        assert result.document.paid_date == date(2025, 1, 10)

    def test_reverting_payment_clears_payment_data(self, db_session):
        inv = create_document(INVOICE, {"counterparty_name": "Client"}, [line()])
        change_status(inv.id, "paid", payment_method="cash")

        result = change_status(inv.id, "sent")

        assert result.document.status == "sent"
        assert result.document.payment_method is None
        assert result.document.paid_date is None

    def test_overdue_then_paid(self, db_session):
        inv = create_document(INVOICE, {"counterparty_name": "Client"}, [line()])
        change_status(inv.id, "sent")
        change_status(inv.id, "overdue")

        assert change_status(inv.id, "paid", payment_method="cheque").document.status == "paid"

    def test_transition_table(self):
        assert can_transition(INVOICE, "draft", "paid")
        assert not can_transition(INVOICE, "draft", "overdue")
        assert can_transition(DELIVERY_NOTE, "delivered", "cancelled")
        assert not can_transition(DELIVERY_NOTE, "cancelled", "pending")


class TestQuoteLifecycle:

    def test_sent_then_accepted_without_stock_calls(self, db_session, inventory_api):
        quote = create_document(QUOTE, {"counterparty_name": "Client"}, [line(product_id="42")])

        assert change_status(quote.id, "sent").changed is True
        result = change_status(quote.id, "accepted")

        assert result.document.status == "accepted"
        assert result.reconciliation is None
        assert inventory_api.calls == []

    def test_accepted_quote_is_final(self, db_session):
        quote = create_document(QUOTE, {"counterparty_name": "Client"}, [line()])
        change_status(quote.id, "accepted")

        assert change_status(quote.id, "draft").changed is False
        assert change_status(quote.id, "expired").changed is False

    def test_expired_quote_can_be_sent_again(self, db_session):
        quote = create_document(QUOTE, {"counterparty_name": "Client"}, [line()])
        change_status(quote.id, "expired")

        assert change_status(quote.id, "sent").document.status == "sent"

    def test_only_draft_quotes_are_editable(self, db_session):
        quote = create_document(QUOTE, {"counterparty_name": "Client"}, [line()])
        update_document(quote.id, {"valid_until": "2025-03-01"}, [line(quantity=4)])

        change_status(quote.id, "sent")
        with pytest.raises(InvalidStateError):
            update_document(quote.id, {}, [line(quantity=5)])

        change_status(quote.id, "draft")
        assert update_document(quote.id, {}, [line(quantity=5)]).lines[0].quantity == 5


class TestPurchaseOrderStatus:

    def test_status_cannot_be_set_directly(self, db_session):
        po = create_document(PURCHASE_ORDER, {"supplier_name": "Supplier"}, [line()])
        with pytest.raises(InvalidStateError):
            change_status(po.id, "completed")

    def test_derived_status(self, db_session):
        po = create_document(PURCHASE_ORDER, {"supplier_name": "Supplier"}, [line(quantity=2), line(quantity=3)])
        first, second = po.lines

        assert derive_purchase_order_status(po.lines) == "pending"
        first.quantity_received = 1
        assert derive_purchase_order_status(po.lines) == "partial"
        first.quantity_received = 2
        second.quantity_received = 3
        assert derive_purchase_order_status(po.lines) == "completed"
        db_session.rollback()
