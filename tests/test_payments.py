"""Tests for payment transactions."""

import pytest

from conftest import AGGREGATOR, FARMER, RETAILER, auth_header, collect, login


@pytest.fixture
def retailer_token(client, retailer):
    return login(client, RETAILER)


def pay(client, token, crop, **overrides):
    body = {"cropId": crop["_id"], "sellerEmail": FARMER["email"], "quantity": 10, "pricePerUnit": 40}
    body.update(overrides)
    return client.post("/api/v1/payments", json=body, headers=auth_header(token))


class TestCreate:
    def test_caller_is_buyer(self, client, crop, retailer_token):
        resp = pay(client, retailer_token, crop, notes="first lot")
        body = resp.get_json()
        assert resp.status_code == 201
        assert body["message"] == "Payment transaction created"

        tx = body["transaction"]
        assert tx["totalAmount"] == 400
        assert tx["status"] == "pending"
        assert tx["paymentStatus"] == "pending"
        assert tx["buyer"]["email"] == RETAILER["email"]
        assert tx["seller"]["email"] == FARMER["email"]
        assert tx["crop"]["traceabilityId"] == crop["traceabilityId"]
        assert "password" not in tx["buyer"]

    def test_explicit_total_kept(self, client, crop, retailer_token):
        resp = pay(client, retailer_token, crop, totalAmount=350, paymentStatus="partial")
        tx = resp.get_json()["transaction"]
        assert tx["totalAmount"] == 350
        assert tx["paymentStatus"] == "partial"

    def test_requires_token(self, client, crop):
        resp = client.post("/api/v1/payments", json={"cropId": crop["_id"]})
        assert resp.status_code == 401
        assert resp.get_json()["success"] is False

    def test_unknown_seller(self, client, crop, retailer_token):
        resp = pay(client, retailer_token, crop, sellerEmail="ghost@example.com")
        assert resp.status_code == 404
        assert resp.get_json()["message"] == "Seller not found"

    def test_unknown_crop(self, client, crop, retailer_token):
        resp = pay(client, retailer_token, crop, cropId="5f0000000000000000000000")
        assert resp.status_code == 404

    def test_negative_quantity(self, client, crop, retailer_token):
        resp = pay(client, retailer_token, crop, quantity=-1)
        assert resp.status_code == 400

    def test_unknown_payment_status(self, client, crop, retailer_token):
        resp = pay(client, retailer_token, crop, paymentStatus="lost")
        assert resp.status_code == 400


class TestMyTransactions:
    def test_buyer_and_seller_both_see_it(self, client, crop, retailer_token):
        pay(client, retailer_token, crop)

        mine = client.get("/api/v1/payments/my-transactions", headers=auth_header(retailer_token)).get_json()
        assert mine["success"] is True
        assert mine["count"] == 1

        farmer_token = login(client, FARMER)
        theirs = client.get("/api/v1/payments/my-transactions", headers=auth_header(farmer_token)).get_json()
        assert theirs["count"] == 1
        assert theirs["transactions"][0]["_id"] == mine["transactions"][0]["_id"]

    def test_unrelated_user_sees_nothing(self, client, crop, retailer_token, aggregator_token):
        pay(client, retailer_token, crop)
        resp = client.get("/api/v1/payments/my-transactions", headers=auth_header(aggregator_token))
        assert resp.get_json() == {"success": True, "count": 0, "transactions": []}

    def test_newest_first(self, client, crop, retailer_token):
        pay(client, retailer_token, crop, notes="older")
        pay(client, retailer_token, crop, notes="newer")
        txs = client.get("/api/v1/payments/my-transactions",
                         headers=auth_header(retailer_token)).get_json()["transactions"]
        assert [t["notes"] for t in txs] == ["newer", "older"]

    def test_recorded_sale_listed_for_aggregator(self, client, crop, aggregator_token, retailer_token):
        cid = collect(client, aggregator_token, crop["_id"]).get_json()["data"]["collection"]["collectionId"]
        client.put(f"/api/v1/aggregator/collections/{cid}/sale",
                   json={"buyerEmail": RETAILER["email"], "salePrice": 4500},
                   headers=auth_header(aggregator_token))

        resp = client.get("/api/v1/payments/my-transactions", headers=auth_header(aggregator_token))
        tx = resp.get_json()["transactions"][0]
        assert tx["seller"]["email"] == AGGREGATOR["email"]
        assert tx["buyer"]["email"] == RETAILER["email"]
        assert tx["status"] == "confirmed"

    def test_requires_token(self, client):
        assert client.get("/api/v1/payments/my-transactions").status_code == 401
