# Shop order mirror tests
#
# Tests for:
# - Upsert by external id
# - Money and tax class conversion
# - POS / website detection

from datetime import datetime

import pytest

from stockdocs.errors import ExternalSystemError
from stockdocs.models import ExternalOrder, ExternalOrderLine
from stockdocs.services.money import to_cents, tax_rate_from_class
from stockdocs.services.order_sync_service import sync_orders, detect_order_source, list_orders


def _shop_order(order_id, status="completed", payment="Direct bank transfer", **extra):
    payload = {
        "id": order_id,
        "number": str(order_id),
        "status": status,
        "total": "36.00",
        "payment_method_title": payment,
        "billing": {"first_name": "Ada", "last_name": "Lovelace", "email": "ada@example.test"},
        "date_created": "2025-01-10T09:15:00",
        "date_completed": "2025-01-10T16:45:00",
        "meta_data": [],
        "line_items": [
            {
                "product_id": 42,
                "variation_id": 0,
                "name": "Lamp",
                "sku": "LMP",
                "quantity": 3,
                "price": 10,
                "total": "30.00",
                "total_tax": "6.00",
                "tax_class": "",
            },
        ],
    }
    payload.update(extra)
    return payload


class TestSyncOrders:

    @pytest.mark.smoke
    def test_orders_are_stored_with_lines(self, db_session, inventory_api):
        inventory_api.orders = [_shop_order(101), _shop_order(102, status="processing", date_completed=None)]

        count = sync_orders()

        assert count == 2
        order = db_session.query(ExternalOrder).filter_by(external_id="101").one()
        assert order.customer_name == "Ada Lovelace"
        assert order.total_cents == 3600
        assert order.completed_at == datetime(2025, 1, 10, 16, 45)
        assert order.order_source == "website"
        assert [(l.product_id, l.quantity, l.unit_price_cents, l.line_total_cents) for l in order.lines] == [
            ("42", 3, 1000, 3000),
        ]

        pending = db_session.query(ExternalOrder).filter_by(external_id="102").one()
        assert pending.completed_at is None

    def test_second_sync_does_not_duplicate(self, db_session, inventory_api):
        inventory_api.orders = [_shop_order(101)]
        sync_orders()

        inventory_api.orders = [_shop_order(101, total="40.00")]
        sync_orders()

        assert db_session.query(ExternalOrder).count() == 1
        assert db_session.query(ExternalOrderLine).count() == 1
        assert db_session.query(ExternalOrder).one().total_cents == 4000

    def test_completed_order_without_completion_date_uses_last_update(self, db_session, inventory_api):
        inventory_api.orders = [_shop_order(7, date_completed=None, date_modified="2025-01-11T08:00:00")]
        sync_orders()

        assert db_session.query(ExternalOrder).one().completed_at == datetime(2025, 1, 11, 8, 0)

    def test_not_configured(self, db_session, inventory_api, app, monkeypatch):
        monkeypatch.setitem(app.config, "INVENTORY_API_URL", "")
        with pytest.raises(ExternalSystemError):
            sync_orders()

    def test_list_filters_by_source(self, db_session, inventory_api):
        inventory_api.orders = [_shop_order(1), _shop_order(2, payment="Cash")]
        sync_orders()

        orders, total = list_orders(source="pos")
        assert total == 1
        assert orders[0].external_id == "2"


class TestOrderSource:

    def test_pos_meta_marker(self):
        assert detect_order_source({"meta_data": [{"key": "_pos_register_id", "value": 3}]}) == "pos"

    def test_cash_payment_is_pos(self):
        assert detect_order_source({"payment_method_title": "Espèces"}) == "pos"

    def test_default_is_website(self):
        assert detect_order_source({"payment_method_title": "Carte bancaire"}) == "website"


class TestConversions:

    @pytest.mark.parametrize("tax_class, expected", [
        ("standard", 2000),
        ("reduced-rate", 1000),
        ("zero-rate", 0),
        ("Exonéré", 0),
        ("TVA 5,5%", 550),
        ("TVA 20", 2000),
        ("", 0),
        (None, 0),
    ])
    def test_tax_rate_from_class(self, tax_class, expected):
        assert tax_rate_from_class(tax_class) == expected

    def test_to_cents(self):
        assert to_cents("12.34") == 1234
        assert to_cents(10) == 1000
        assert to_cents("0.005") == 1
        assert to_cents(None) == 0
        with pytest.raises(ValueError):
            to_cents("abc")
