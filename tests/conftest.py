import mongomock
import pytest
from fastapi.testclient import TestClient

import database
from main import app
from schemas import Product, User


@pytest.fixture
def db(monkeypatch):
    mock_db = mongomock.MongoClient()["storefront_test"]
    monkeypatch.setattr(database, "db", mock_db)
    return mock_db


@pytest.fixture
def client(db):
    return TestClient(app)


@pytest.fixture
def make_user(db):
    def _make(name="Ada Buyer", email=None, is_admin=False):
        email = email or f"{name.split()[0].lower()}@example.com"
        return database.create_document("user", User(name=name, email=email, is_admin=is_admin))
    return _make


@pytest.fixture
def make_product(db):
    def _make(name="Desk Lamp", price=25.0, stock=5, images=None):
        product = Product(name=name, price=price, stock=stock, images=images if images is not None else ["lamp.jpg"])
        return database.create_document("product", product)
    return _make


@pytest.fixture
def buyer(make_user):
    return make_user("Ada Buyer")


@pytest.fixture
def admin(make_user):
    return make_user("Root Admin", is_admin=True)


def auth(user_id):
    return {"X-User-Id": user_id}


def order_payload(*items, **overrides):
    payload = {
        "items": list(items),
        "shipping_address": {
            "first_name": "Ada",
            "last_name": "Buyer",
            "address": "1 Main St",
            "city": "Springfield",
            "state": "IL",
            "zip_code": "62701",
        },
        "email": "ada@example.com",
        "phone": "555-0100",
        "payment_method": "card",
        "subtotal": 75.0,
        "tax": 6.0,
        "total": 81.0,
    }
    payload.update(overrides)
    return payload


def stock_of(product_id):
    return database.get_document_by_id("product", product_id)["stock"]
