# Stock reconciliation tests
#
# Tests for:
# - reduce / restore / receive-delta arithmetic
# - Per-item failure isolation
# - Products without stock management
# - Missing API configuration

import json

import httpx
import pytest

from stockdocs.errors import ValidationError, ExternalSystemError
from stockdocs.services.inventory_client import InventoryClient
from stockdocs.services.inventory_service import (
    StockMovement,
    reconcile,
    OPERATION_REDUCE,
    OPERATION_RESTORE,
    OPERATION_RECEIVE_DELTA,
)

from factories import API_URL


pytestmark = pytest.mark.inventory


class TestReconcile:

    def test_each_operation(self, db_session, inventory_api):
        inventory_api.add_product("1", stock=10)

        reconcile([StockMovement("1", 4)], OPERATION_REDUCE)
        assert inventory_api.stock("1") == 6

        reconcile([StockMovement("1", 4)], OPERATION_RESTORE)
        assert inventory_api.stock("1") == 10

        reconcile([StockMovement("1", 5)], OPERATION_RECEIVE_DELTA)
        assert inventory_api.stock("1") == 15

    def test_only_stock_quantity_is_written(self, db_session, inventory_api):
        inventory_api.add_product("1", stock=10)
        seen = []

        def recording_handler(request):
            if request.method == "PUT":
                seen.append(request.content)
            return inventory_api.handler(request)

        client = InventoryClient(API_URL, "ck", "cs", transport=httpx.MockTransport(recording_handler))
        reconcile([StockMovement("1", 3)], OPERATION_REDUCE, client)

        assert [json.loads(body) for body in seen] == [{"stock_quantity": 7}]

    def test_one_failure_does_not_stop_the_rest(self, db_session, inventory_api):
        """
        SCENARIO: Second of three products answers HTTP 500, a fourth is unknown
        EXPECTED: The others are updated, errors listed in item order
        """
        inventory_api.add_product("1", stock=10)
        inventory_api.add_product("3", stock=10)
        inventory_api.failing.add("2")

        result = reconcile(
            [StockMovement("1", 1), StockMovement("2", 1), StockMovement("3", 1), StockMovement("404", 1)],
            OPERATION_REDUCE,
        )

        assert result.updated_count == 2
        assert result.error_count == 2
        assert result.errors[0].startswith("Product 2:")
        assert result.errors[1].startswith("Product 404:")
        assert inventory_api.stock("1") == 9
        assert inventory_api.stock("3") == 9
        assert result.message == "Stock reduced for 2 product(s) (2 error(s))"

    def test_products_without_stock_management_are_not_written(self, db_session, inventory_api):
        inventory_api.add_product("1", stock=10, manage_stock=False)

        reduced = reconcile([StockMovement("1", 2)], OPERATION_REDUCE)
        received = reconcile([StockMovement("1", 2)], OPERATION_RECEIVE_DELTA)

        assert inventory_api.stock_calls("PUT") == []
        assert reduced.updated_count == 1
        assert received.updated_count == 0
        assert received.error_count == 0

    def test_lines_without_product_or_quantity_are_skipped(self, db_session, inventory_api):
        result = reconcile([StockMovement(None, 2), StockMovement("1", 0)], OPERATION_RESTORE)

        assert result.updated_count == 0
        assert inventory_api.calls == []

    def test_not_configured_records_an_error_per_item(self, db_session, inventory_api, app, monkeypatch):
        monkeypatch.setitem(app.config, "INVENTORY_API_URL", "")

        result = reconcile([StockMovement("1", 1), StockMovement("2", 1)], OPERATION_REDUCE)

        assert result.updated_count == 0
        assert result.error_count == 2
        assert "not configured" in result.errors[0]

    def test_invalid_operation_rejected(self, db_session):
        with pytest.raises(ValidationError):
            reconcile([StockMovement("1", 1)], "teleport")


class TestInventoryClient:

    def test_transport_errors_become_external_errors(self):
        def broken(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = InventoryClient(API_URL, "ck", "cs", transport=httpx.MockTransport(broken))
        with pytest.raises(ExternalSystemError):
            client.get_product("1")

    def test_basic_auth_is_sent(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"id": 1, "stock_quantity": "7", "manage_stock": True})

        with InventoryClient(API_URL, "ck", "cs", transport=httpx.MockTransport(handler)) as client:
            product = client.get_product("1")

        assert seen["auth"].startswith("Basic ")
        assert product.stock_quantity == 7
        assert product.manage_stock is True
