# agritrace/mongo.py
from __future__ import annotations

from flask_pymongo import PyMongo
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

mongo = PyMongo()

USERS = "users"
CROPS = "crops"
COLLECTIONS = "aggregator_collections"
ORDERS = "orders"
TRANSACTIONS = "transactions"


def init_mongo(app):
    """
    Initializes Flask-PyMongo from app.config["MONGO_URI"] and creates indexes.
    Call this during app startup (create_app).
    """
    if app.config.get("DISABLE_MONGO"):
        app.logger.warning("Mongo disabled by DISABLE_MONGO=1")
        return mongo

    if not app.config.get("MONGO_URI"):
        app.logger.warning("MONGO_URI not set. Mongo will not be initialized.")
        return mongo

    mongo.init_app(app)

    try:
        ensure_indexes(mongo.db)
        app.logger.info("Mongo initialized")
    except PyMongoError as e:
        # keep the app up; requests will surface the database error as a 500
        app.logger.warning("Mongo index setup failed: %s", e)

    return mongo


def ensure_indexes(db):
    """Unique keys and the lookups the services rely on."""
    db[USERS].create_index([("email", ASCENDING)], unique=True)

    db[CROPS].create_index([("traceabilityId", ASCENDING)], unique=True)
    db[CROPS].create_index([("farmer", ASCENDING), ("status", ASCENDING)])
    db[CROPS].create_index([("category", ASCENDING), ("status", ASCENDING)])

    db[COLLECTIONS].create_index([("collectionId", ASCENDING)], unique=True)
    db[COLLECTIONS].create_index([("traceability.batchNumber", ASCENDING)], unique=True)
    db[COLLECTIONS].create_index([("aggregator", ASCENDING), ("status", ASCENDING)])
    db[COLLECTIONS].create_index([("sourceCrop", ASCENDING)])
    db[COLLECTIONS].create_index([("collectionDate", DESCENDING)])

    db[ORDERS].create_index([("orderId", ASCENDING)], unique=True)
    db[ORDERS].create_index([("farmerId", ASCENDING), ("status", ASCENDING)])
    db[ORDERS].create_index([("buyerId", ASCENDING), ("status", ASCENDING)])

    db[TRANSACTIONS].create_index([("buyer", ASCENDING)])
    db[TRANSACTIONS].create_index([("seller", ASCENDING)])
    db[TRANSACTIONS].create_index([("createdAt", DESCENDING)])
