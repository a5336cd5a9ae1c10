# Cash control tests
#
# Tests for:
# - Aggregation of paid invoices and completed shop orders by channel
# - One control per date
# - Journal gate

from datetime import date, timedelta

import pytest

from stockdocs.errors import ConflictError, ValidationError
from stockdocs.models import CashControl, INVOICE
from stockdocs.services.cash_control_service import (
    close_cash_control,
    open_cash_control,
    can_create_journal,
    list_cash_controls,
)
from stockdocs.services.document_service import create_document
from stockdocs.services.lifecycle_service import change_status

from factories import line, paid_invoice, completed_order


pytestmark = pytest.mark.cash


class TestCloseCashControl:

    @pytest.mark.smoke
    def test_cash_invoice_and_transfer_order(self, db_session, business_date):
        """
        SCENARIO: One paid invoice of 500 in cash, one shop order of 300 by transfer
        EXPECTED: cash 500, transfer 300, total 800
        """
        paid_invoice(business_date, [line(unit_price_cents=500, tax_rate_bps=0)], payment_method="cash")
        completed_order(business_date, 1001, [("7", "Mug", 1, 300, 0)], payment_method="Virement bancaire")

        control, stats = close_cash_control("2025-01-10")

        assert control.status == "closed"
        assert control.control_number == "CC-2025-0001"
        assert control.cash_total_cents == 500
        assert control.transfer_total_cents == 300
        assert control.cheque_total_cents == 0
        assert control.total_cents == 800
        assert stats["invoices_count"] == 1
        assert stats["orders_count"] == 1
        assert stats["total_cents"] == 800

    def test_only_the_given_date_counts(self, db_session, business_date):
        paid_invoice(business_date - timedelta(days=1), [line(unit_price_cents=100, tax_rate_bps=0)])
        completed_order(business_date + timedelta(days=1), 1, [("7", "Mug", 1, 300, 0)])
        paid_invoice(business_date, [line(unit_price_cents=250, tax_rate_bps=0)], payment_method="cheque")

        control, stats = close_cash_control(business_date)

        assert control.cheque_total_cents == 250
        assert control.total_cents == 250
        assert stats["orders_count"] == 0

    def test_unpaid_and_order_sourced_invoices_are_excluded(self, db_session, business_date):
        create_document(INVOICE, {"counterparty_name": "Client", "document_date": business_date}, [line()])
        order_invoice = create_document(
            INVOICE, {"counterparty_name": "Client"}, [line(unit_price_cents=999)], source="order",
        )
        change_status(order_invoice.id, "paid", payment_method="cash", paid_date=business_date)

        control, stats = close_cash_control(business_date)

        assert control.total_cents == 0
        assert stats["invoices_count"] == 0

    def test_unknown_payment_label_counts_as_cash(self, db_session, business_date):
        completed_order(business_date, 5, [("7", "Mug", 1, 300, 0)], payment_method="Paiement à la livraison")

        control, _ = close_cash_control(business_date)

        assert control.cash_total_cents == 300

    def test_second_close_conflicts(self, db_session, business_date):
        close_cash_control(business_date)
        with pytest.raises(ConflictError):
            close_cash_control(business_date)
        assert db_session.query(CashControl).count() == 1

    def test_open_control_blocks_closing(self, db_session, business_date):
        opened = open_cash_control(business_date, "Morning float 50")
        paid_invoice(business_date, [line(unit_price_cents=100, tax_rate_bps=0)])

        with pytest.raises(ConflictError):
            close_cash_control(business_date)

        control = db_session.query(CashControl).one()
        assert control.id == opened.id
        assert control.status == "open"
        assert control.control_number is None
        assert control.total_cents == 0

    def test_open_twice_conflicts(self, db_session, business_date):
        open_cash_control(business_date)
        with pytest.raises(ConflictError):
            open_cash_control(business_date)

    def test_date_is_required(self, db_session):
        with pytest.raises(ValidationError):
            close_cash_control(None)
        with pytest.raises(ValidationError):
            close_cash_control("10/01/2025")


class TestCanCreateJournal:

    def test_gate(self, db_session, business_date):
        next_day = business_date + timedelta(days=1)
        assert can_create_journal(business_date) is False

        open_cash_control(next_day)
        assert can_create_journal(next_day) is False

        close_cash_control(business_date)
        assert can_create_journal(business_date) is True
        assert can_create_journal(date(2025, 1, 12)) is False


class TestListCashControls:

    def test_newest_first(self, db_session):
        close_cash_control("2025-01-09")
        close_cash_control("2025-01-10")
        open_cash_control("2025-01-11")

        controls, total = list_cash_controls()
        assert total == 3
        assert [c.control_date.isoformat() for c in controls] == ["2025-01-11", "2025-01-10", "2025-01-09"]

        controls, total = list_cash_controls(status="closed")
        assert total == 2
