"""Tests for registration, login and the user directory."""

from conftest import AGGREGATOR, FARMER, auth_header, login, register


class TestRegister:
    def test_register_hides_password(self, client):
        user = register(client, FARMER)
        assert user["email"] == "asha@example.com"
        assert user["role"] == "farmer"
        assert "password" not in user

    def test_password_is_hashed(self, client, db):
        register(client, FARMER)
        stored = db.users.find_one({"email": FARMER["email"]})
        assert stored["password"] != FARMER["password"]
        assert stored["password"].startswith("$2")

    def test_duplicate_email_rejected(self, client):
        register(client, FARMER)
        resp = client.post("/api/v1/auth/register", json={**FARMER, "email": "ASHA@example.com"})
        assert resp.status_code == 400
        assert resp.get_json()["success"] is False

    def test_missing_fields_listed(self, client):
        resp = client.post("/api/v1/auth/register", json={"email": "x@example.com"})
        body = resp.get_json()
        assert resp.status_code == 400
        assert body["success"] is False
        fields = {e["field"] for e in body["errors"]}
        assert {"name", "password", "role", "phone"} <= fields


class TestLogin:
    def test_login_returns_token_without_password(self, client):
        register(client, FARMER)
        resp = client.post("/api/v1/auth/login", json={"email": FARMER["email"], "password": FARMER["password"]})
        body = resp.get_json()
        assert resp.status_code == 200
        assert body["success"] is True
        assert body["token"]
        assert "password" not in body["user"]

    def test_wrong_password(self, client):
        register(client, FARMER)
        resp = client.post("/api/v1/auth/login", json={"email": FARMER["email"], "password": "nope"})
        assert resp.status_code == 401
        assert resp.get_json() == {"success": False, "message": "Invalid credentials"}

    def test_unknown_email(self, client):
        resp = client.post("/api/v1/auth/login", json={"email": "ghost@example.com", "password": "x"})
        assert resp.status_code == 401

    def test_inactive_user(self, client, db):
        register(client, FARMER)
        db.users.update_one({"email": FARMER["email"]}, {"$set": {"isActive": False}})
        resp = client.post("/api/v1/auth/login", json={"email": FARMER["email"], "password": FARMER["password"]})
        assert resp.status_code == 401

    def test_me(self, client):
        register(client, AGGREGATOR)
        token = login(client, AGGREGATOR)
        resp = client.get("/api/v1/auth/me", headers=auth_header(token))
        assert resp.status_code == 200
        assert resp.get_json()["user"]["email"] == AGGREGATOR["email"]

    def test_me_without_token(self, client):
        resp = client.get("/api/v1/auth/me")
        assert resp.status_code == 401
        assert resp.get_json()["success"] is False

    def test_me_with_garbage_token(self, client):
        resp = client.get("/api/v1/auth/me", headers=auth_header("not-a-jwt"))
        assert resp.status_code == 401


class TestProfile:
    def test_get_profile(self, client, farmer):
        resp = client.get(f"/api/v1/users/profile/{FARMER['email']}")
        assert resp.status_code == 200
        assert resp.get_json()["user"]["name"] == "Asha"

    def test_unknown_profile(self, client):
        resp = client.get("/api/v1/users/profile/ghost@example.com")
        assert resp.status_code == 404

    def test_update_profile_ignores_role(self, client, farmer):
        resp = client.put("/api/v1/users/profile", json={
            "email": FARMER["email"],
            "name": "Asha Patil",
            "role": "admin",
        })
        user = resp.get_json()["user"]
        assert resp.status_code == 200
        assert user["name"] == "Asha Patil"
        assert user["role"] == "farmer"

    def test_update_location(self, client, farmer):
        resp = client.put("/api/v1/users/location", json={
            "email": FARMER["email"],
            "address": {
                "district": "Nashik",
                "state": "Maharashtra",
                "coordinates": {"latitude": 19.99, "longitude": 73.78},
                "isLocationDetected": True,
            },
        })
        address = resp.get_json()["user"]["address"]
        assert resp.status_code == 200
        assert address["district"] == "Nashik"
        assert address["coordinates"]["latitude"] == 19.99
