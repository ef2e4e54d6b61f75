# agritrace/routes/users/user_routes.py

from flask import Blueprint, jsonify, request

from agritrace.models.auth.user_models import LocationUpdateModel, ProfileUpdateModel
from agritrace.services.users.user_service import UserService

users_bp = Blueprint("users", __name__, url_prefix="/api/v1/users")


@users_bp.get("/profile/<email>")
def get_profile(email):
    return jsonify({"success": True, "user": UserService.get_profile(email)})


@users_bp.put("/profile")
@users_bp.put("/profile/<email>")
def update_profile(email=None):
    data = request.get_json(silent=True) or {}
    email = email or data.pop("email", None)
    data.pop("email", None)
    user = UserService.update_profile(email, ProfileUpdateModel(**data))
    return jsonify({"success": True, "message": "Profile updated successfully", "user": user})


@users_bp.put("/location")
def update_location():
    payload = LocationUpdateModel(**(request.get_json(silent=True) or {}))
    user = UserService.update_location(payload)
    return jsonify({"success": True, "message": "Location updated successfully", "user": user})
