"""
Pytest fixtures for stockdocs backend tests.

Provides an in-memory application, a per-test table wipe, and a fake
external inventory API served through httpx.MockTransport.
"""

import json
import re
from datetime import date

import httpx
import pytest

from stockdocs import create_app
from stockdocs.extensions import db

from factories import API_URL


_PRODUCT_PATH = re.compile(r"/products/([^/]+)$")


class FakeInventoryAPI:
    """
    In-process stand-in for the shop's REST API.

    products: {product_id: {"stock_quantity": int, "manage_stock": bool}}
    failing: product ids that answer HTTP 500
    calls: (method, path) for every request received
    """

    def __init__(self):
        self.reset()

    def reset(self):
        self.products = {}
        self.orders = []
        self.failing = set()
        self.calls = []

    def add_product(self, product_id, stock, manage_stock=True):
        self.products[str(product_id)] = {"stock_quantity": stock, "manage_stock": manage_stock}

    def stock(self, product_id):
        return self.products[str(product_id)]["stock_quantity"]

    def stock_calls(self, method=None):
        return [
            call for call in self.calls
            if "/products/" in call[1] and (method is None or call[0] == method)
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append((request.method, path))

        if path.endswith("/orders") and request.method == "GET":
            return httpx.Response(200, json=self.orders)

        match = _PRODUCT_PATH.search(path)
        if not match:
            return httpx.Response(404, json={"message": "No route"})

        product_id = match.group(1)
        if product_id in self.failing:
            return httpx.Response(500, json={"message": "Internal error"})

        product = self.products.get(product_id)
        if product is None:
            return httpx.Response(404, json={"message": "Invalid ID"})

        if request.method == "PUT":
            body = json.loads(request.content or b"{}")
            product["stock_quantity"] = body["stock_quantity"]

        return httpx.Response(200, json={"id": product_id, **product})


_fake_api = FakeInventoryAPI()


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'INVENTORY_API_URL': API_URL,
        'INVENTORY_CONSUMER_KEY': 'ck_test',
        'INVENTORY_CONSUMER_SECRET': 'cs_test',
        'INVENTORY_HTTP_TRANSPORT': httpx.MockTransport(_fake_api.handler),
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def inventory_api(db_session):
    """Fake shop API, emptied for each test."""
    _fake_api.reset()
    yield _fake_api
    _fake_api.reset()


@pytest.fixture
def business_date():
    return date(2025, 1, 10)
