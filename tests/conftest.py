"""Shared fixtures: a Flask app on an in-memory mongomock database."""

import mongomock
import pytest

from app import create_app
from agritrace.mongo import ensure_indexes, mongo

FARMER = {
    "name": "Asha",
    "email": "asha@example.com",
    "password": "farm-secret",
    "role": "farmer",
    "phone": "9000000001",
    "address": {"village": "Kalas", "district": "Pune", "state": "Maharashtra", "pincode": "411001"},
}

AGGREGATOR = {
    "name": "Ravi Traders",
    "email": "ravi@example.com",
    "password": "agg-secret",
    "role": "aggregator",
    "phone": "9000000002",
    "address": {"district": "Pune", "state": "Maharashtra"},
}

RETAILER = {
    "name": "Meera Foods",
    "email": "meera@example.com",
    "password": "shop-secret",
    "role": "retailer",
    "phone": "9000000003",
}

COLLECTION_LOCATION = {"farmAddress": "Kalas village", "district": "Pune", "state": "Maharashtra"}


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "DISABLE_MONGO": True,
        "UPLOAD_FOLDER": str(tmp_path / "uploads"),
        "QUALITY_SEED": 7,
        "BCRYPT_LOG_ROUNDS": 4,
        "JWT_SECRET_KEY": "test-secret-key-with-enough-length",
        "FRONTEND_URL": "http://frontend.test",
    })
    mongo.db = mongomock.MongoClient()["agritrace_test"]
    ensure_indexes(mongo.db)
    yield app
    mongo.db = None


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return mongo.db


def register(client, user):
    resp = client.post("/api/v1/auth/register", json=user)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["user"]


def login(client, user):
    resp = client.post("/api/v1/auth/login", json={"email": user["email"], "password": user["password"]})
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()["token"]


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


def upload_crop(client, **overrides):
    body = {
        "farmerEmail": FARMER["email"],
        "name": "Rice",
        "variety": "Basmati",
        "quantity": 100,
        "unit": "kg",
        "pricePerUnit": 40,
    }
    body.update(overrides)
    resp = client.post("/api/v1/crops/upload", json=body)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["crop"]


def collect(client, token, crop_id, **overrides):
    body = {
        "cropId": crop_id,
        "collectedQuantity": 100,
        "collectedUnit": "kg",
        "purchasePrice": 3800,
        "collectionLocation": COLLECTION_LOCATION,
    }
    body.update(overrides)
    return client.post("/api/v1/aggregator/collect-crop", json=body, headers=auth_header(token))


@pytest.fixture
def farmer(client):
    return register(client, FARMER)


@pytest.fixture
def aggregator(client):
    return register(client, AGGREGATOR)


@pytest.fixture
def aggregator_token(client, aggregator):
    return login(client, AGGREGATOR)


@pytest.fixture
def retailer(client):
    return register(client, RETAILER)


@pytest.fixture
def crop(client, farmer):
    return upload_crop(client)
