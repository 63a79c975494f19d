import itertools

import mongomock
import pytest
from fastapi.testclient import TestClient

import database
import main
from schemas import User, Restaurant, Item

_emails = itertools.count(1)


@pytest.fixture(autouse=True)
def db(monkeypatch):
    test_db = mongomock.MongoClient()["maate_test"]
    monkeypatch.setattr(database, "db", test_db)
    database.ensure_indexes()
    yield test_db


@pytest.fixture
def client():
    return TestClient(main.app)


@pytest.fixture
def make_user():
    def _make_user(**overrides):
        fields = {"name": "Test User", "email": f"user{next(_emails)}@example.com"}
        fields.update(overrides)
        return database.create_document("user", User(**fields))

    return _make_user


@pytest.fixture
def admin_headers(make_user):
    return {"X-User-Id": make_user(name="Admin", role="admin")}


@pytest.fixture
def user_id(make_user):
    return make_user(name="Customer")


@pytest.fixture
def user_headers(user_id):
    return {"X-User-Id": user_id}


@pytest.fixture
def restaurant_id():
    return database.create_document("restaurant", Restaurant(name="Spice Route", cuisine=["Indian"]))


@pytest.fixture
def make_item(restaurant_id):
    def _make_item(**overrides):
        fields = {"restaurant_id": restaurant_id, "name": "Paneer Tikka", "price": 5.0, "category": "Starters"}
        fields.update(overrides)
        return database.create_document("item", Item(**fields))

    return _make_item
