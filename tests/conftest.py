"""Pytest fixtures: an in-memory Mongo (mongomock) wired into the app via dependency overrides."""
from datetime import datetime, timedelta, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient

import main
from auth import USERS, create_token, hash_password
from catalog import CATEGORIES, PRODUCTS, SUBCATEGORIES
from config import Settings, get_settings
from database import get_db
from payments import PaymentGateway, get_payment_gateway, to_minor_units
from storage import LocalImageStorage, get_storage

TEST_SETTINGS = Settings(jwt_secret="test-secret")
BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeGateway(PaymentGateway):
    def __init__(self):
        self.calls = []

    def create_order(self, amount: float) -> dict:
        self.calls.append(amount)
        return {"id": "order_test_1", "amount": to_minor_units(amount), "currency": "INR", "status": "created"}


@pytest.fixture
def db():
    return mongomock.MongoClient()["storefront_test"]


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def client(db, gateway, upload_dir):
    app = main.app
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_settings] = lambda: TEST_SETTINGS
    app.dependency_overrides[get_storage] = lambda: LocalImageStorage(str(upload_dir), 1_000_000)
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(name=None, email=None, phone=None, password="secret123", role="user", is_active=True):
        counter["n"] += 1
        doc = {
            "name": name or f"User {counter['n']}",
            "email": email if email is not None else f"user{counter['n']}@example.com",
            "phone": phone,
            "password": hash_password(password),
            "role": role,
            "is_active": is_active,
            "addresses": [],
            "wishlist": [],
            "created_at": BASE_TIME,
            "updated_at": BASE_TIME,
        }
        doc["_id"] = db[USERS].insert_one(doc).inserted_id
        return doc

    return _make


@pytest.fixture
def headers_for():
    def _headers(user):
        token = create_token(user["_id"], user["role"], TEST_SETTINGS)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def admin(make_user):
    return make_user(name="Admin User", role="admin")


@pytest.fixture
def customer(make_user):
    return make_user(name="Jane Buyer")


@pytest.fixture
def make_category(db):
    def _make(name="Silk Sarees", is_active=True):
        doc = {"name": name, "description": None, "image": None, "is_active": is_active,
               "created_at": BASE_TIME, "updated_at": BASE_TIME}
        return db[CATEGORIES].insert_one(doc).inserted_id

    return _make


@pytest.fixture
def make_subcategory(db):
    def _make(category_id, name="Banarasi Silk", is_active=True):
        doc = {"name": name, "category": category_id, "is_active": is_active,
               "created_at": BASE_TIME, "updated_at": BASE_TIME}
        return db[SUBCATEGORIES].insert_one(doc).inserted_id

    return _make


@pytest.fixture
def make_product(db):
    """Insert a product; each call is one minute newer than the previous one."""
    counter = {"n": 0}

    def _make(category_id, name=None, is_active=True, rating=0.0, subcategory_id=None, **extra):
        counter["n"] += 1
        stamp = BASE_TIME + timedelta(minutes=counter["n"])
        doc = {
            "name": name or f"Product {counter['n']}",
            "price": 1000.0,
            "description": "Handwoven",
            "image": "/images/sample.jpg",
            "images": ["/images/sample.jpg"],
            "category": category_id,
            "subcategory": subcategory_id,
            "count_in_stock": 5,
            "discount": 0.0,
            "is_active": is_active,
            "rating": rating,
            "num_reviews": 0,
            "reviews": [],
            "user": None,
            "created_at": stamp,
            "updated_at": stamp,
        }
        doc.update(extra)
        return db[PRODUCTS].insert_one(doc).inserted_id

    return _make
