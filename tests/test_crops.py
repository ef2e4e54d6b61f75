"""Tests for the crop registry."""

from conftest import FARMER, RETAILER, register, upload_crop


class TestUpload:
    def test_upload_assigns_traceability_id(self, client, farmer):
        crop = upload_crop(client)
        assert crop["traceabilityId"].startswith("CC-")
        assert crop["status"] == "listed"
        assert crop["category"] == "grains"
        assert crop["farmer"]["name"] == "Asha"

    def test_category_inferred_from_name(self, client, farmer):
        crop = upload_crop(client, name="Tomato")
        assert crop["category"] == "vegetables"

    def test_unknown_farmer(self, client):
        resp = client.post("/api/v1/crops/upload", json={
            "farmerEmail": "ghost@example.com", "name": "Rice", "quantity": 10, "pricePerUnit": 1,
        })
        assert resp.status_code == 404

    def test_non_farmer_cannot_upload(self, client):
        register(client, RETAILER)
        resp = client.post("/api/v1/crops/upload", json={
            "farmerEmail": RETAILER["email"], "name": "Rice", "quantity": 10, "pricePerUnit": 1,
        })
        assert resp.status_code == 404

    def test_zero_quantity_rejected(self, client, farmer):
        resp = client.post("/api/v1/crops/upload", json={
            "farmerEmail": FARMER["email"], "name": "Rice", "quantity": 0, "pricePerUnit": 1,
        })
        assert resp.status_code == 400
        assert resp.get_json()["errors"][0]["field"] == "quantity"


class TestTraceabilityIdImmutable:
    def test_updates_never_change_it(self, client, crop):
        original = crop["traceabilityId"]
        for body in (
            {"pricePerUnit": 45},
            {"traceabilityId": "CC-HACKED-00000", "name": "Brown Rice"},
            {"status": "reserved"},
        ):
            resp = client.put(f"/api/v1/crops/{crop['_id']}", json=body)
            assert resp.status_code == 200
            assert resp.get_json()["crop"]["traceabilityId"] == original

    def test_empty_update_rejected(self, client, crop):
        resp = client.put(f"/api/v1/crops/{crop['_id']}", json={})
        assert resp.status_code == 400


class TestRead:
    def test_get_increments_views(self, client, crop):
        client.get(f"/api/v1/crops/{crop['_id']}")
        resp = client.get(f"/api/v1/crops/{crop['_id']}")
        assert resp.get_json()["crop"]["views"] == 2

    def test_bad_id(self, client):
        assert client.get("/api/v1/crops/not-an-id").status_code == 404

    def test_deactivated_crop_hidden(self, client, crop):
        resp = client.delete(f"/api/v1/crops/{crop['_id']}")
        assert resp.status_code == 200
        assert client.get(f"/api/v1/crops/{crop['_id']}").status_code == 404

    def test_marketplace_filters(self, client, farmer):
        upload_crop(client, name="Rice", pricePerUnit=40)
        upload_crop(client, name="Tomato", pricePerUnit=20, isOrganic=True)
        upload_crop(client, name="Wheat", pricePerUnit=30, status="draft")

        body = client.get("/api/v1/crops/marketplace").get_json()
        assert body["pagination"]["total"] == 2

        body = client.get("/api/v1/crops/marketplace?category=vegetables").get_json()
        assert [c["name"] for c in body["crops"]] == ["Tomato"]

        body = client.get("/api/v1/crops/marketplace?maxPrice=25").get_json()
        assert [c["name"] for c in body["crops"]] == ["Tomato"]

        body = client.get("/api/v1/crops/marketplace?search=ric").get_json()
        assert [c["name"] for c in body["crops"]] == ["Rice"]

        body = client.get("/api/v1/crops/marketplace?sortBy=pricePerUnit&sortOrder=asc").get_json()
        assert [c["name"] for c in body["crops"]] == ["Tomato", "Rice"]

    def test_marketplace_bad_price(self, client):
        assert client.get("/api/v1/crops/marketplace?minPrice=cheap").status_code == 400

    def test_farmer_listing_stats(self, client, farmer):
        upload_crop(client, name="Rice")
        upload_crop(client, name="Wheat", status="draft")
        body = client.get(f"/api/v1/crops/farmer/{FARMER['email']}").get_json()
        assert body["stats"]["totalCrops"] == 2
        assert body["stats"]["activeCrops"] == 1

        body = client.get(f"/api/v1/crops/farmer/{FARMER['email']}?status=draft").get_json()
        assert [c["name"] for c in body["crops"]] == ["Wheat"]
