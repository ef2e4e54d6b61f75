"""Tests for QR issuance and verification."""

import os

import pytest

from agritrace.errors import ServerError
from agritrace.services.qr.qr_service import QRService


class TestGenerate:
    def test_generate_writes_png_and_records_it(self, app, client, db, crop):
        resp = client.get(f"/api/v1/qr/generate/{crop['_id']}")
        body = resp.get_json()
        assert resp.status_code == 200
        assert body["success"] is True

        qr = body["qr"]
        assert qr["code"] == crop["traceabilityId"]
        assert qr["imageUrl"] == f"/uploads/qr/crop-{crop['traceabilityId']}.png"
        assert qr["payload"] == {
            "traceabilityId": crop["traceabilityId"],
            "cropId": crop["_id"],
            "type": "crop",
            "url": f"http://frontend.test/trace/{crop['traceabilityId']}",
        }

        path = os.path.join(app.config["UPLOAD_FOLDER"], "qr", f"crop-{crop['traceabilityId']}.png")
        with open(path, "rb") as f:
            assert f.read(8) == b"\x89PNG\r\n\x1a\n"

        stored = db.crops.find_one({"traceabilityId": crop["traceabilityId"]})
        assert stored["qrCode"]["code"] == crop["traceabilityId"]
        assert stored["qrCode"]["imageUrl"] == qr["imageUrl"]

    def test_generate_is_idempotent(self, app, client, crop):
        first = client.get(f"/api/v1/qr/generate/{crop['_id']}").get_json()["qr"]
        second = client.get(f"/api/v1/qr/generate/{crop['_id']}").get_json()["qr"]
        assert first["code"] == second["code"]
        assert first["imageUrl"] == second["imageUrl"]
        assert os.listdir(os.path.join(app.config["UPLOAD_FOLDER"], "qr")) == [
            f"crop-{crop['traceabilityId']}.png"
        ]

    def test_generated_image_is_served(self, client, crop):
        qr = client.get(f"/api/v1/qr/generate/{crop['_id']}").get_json()["qr"]
        resp = client.get(qr["imageUrl"])
        assert resp.status_code == 200
        assert resp.mimetype == "image/png"

    def test_unknown_crop(self, client):
        resp = client.get("/api/v1/qr/generate/5f0000000000000000000000")
        assert resp.status_code == 404

    def test_disk_failure_is_server_error(self, app, crop, tmp_path):
        # a regular file where the upload folder should be
        blocker = tmp_path / "blocked"
        blocker.write_text("not a directory")
        app.config["UPLOAD_FOLDER"] = str(blocker)
        with app.test_request_context():
            with pytest.raises(ServerError):
                QRService.generate(crop["_id"])


class TestVerify:
    def test_verify_by_traceability_id(self, client, crop):
        resp = client.get(f"/api/v1/qr/verify/{crop['traceabilityId']}")
        data = resp.get_json()["crop"]
        assert resp.status_code == 200
        assert data["id"] == crop["_id"]
        assert data["name"] == "Rice"
        assert data["farmer"]["name"] == "Asha"
        assert "password" not in data["farmer"]

    def test_verify_by_raw_key(self, client, crop):
        resp = client.get(f"/api/v1/qr/verify/{crop['_id']}")
        assert resp.get_json()["crop"]["traceabilityId"] == crop["traceabilityId"]

    def test_verify_unknown(self, client):
        resp = client.get("/api/v1/qr/verify/CC-UNKNOWN")
        assert resp.status_code == 404
        assert resp.get_json()["success"] is False

    def test_missing_upload(self, client):
        resp = client.get("/uploads/qr/nothing.png")
        assert resp.status_code == 404
        assert resp.get_json()["success"] is False
