# agritrace/routes/auth/auth_routes.py

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required

from agritrace.models.auth.user_models import LoginModel, RegisterModel
from agritrace.services.auth.auth_service import AuthService, InvalidCredentials

auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


# ---------------------------------------------------------
# POST /api/v1/auth/register
# ---------------------------------------------------------
@auth_bp.post("/register")
def register():
    payload = RegisterModel(**(request.get_json(silent=True) or {}))
    user = AuthService.register(payload)
    return jsonify({"success": True, "message": "User registered successfully", "user": user}), 201


# ---------------------------------------------------------
# POST /api/v1/auth/login
# ---------------------------------------------------------
@auth_bp.post("/login")
def login():
    payload = LoginModel(**(request.get_json(silent=True) or {}))
    try:
        user, token = AuthService.login(payload)
    except InvalidCredentials:
        current_app.logger.info("Failed login for %s", payload.email)
        return jsonify({"success": False, "message": "Invalid credentials"}), 401

    return jsonify({"success": True, "message": "Login successful", "user": user, "token": token})


# ---------------------------------------------------------
# GET /api/v1/auth/me
# ---------------------------------------------------------
@auth_bp.get("/me")
@jwt_required()
def me():
    return jsonify({"success": True, "user": AuthService.get_user(get_jwt_identity())})
