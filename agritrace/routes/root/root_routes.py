# agritrace/routes/root/root_routes.py

from flask import Blueprint, jsonify

from agritrace.utils import now_utc

root_bp = Blueprint("root", __name__)


@root_bp.get("/health")
def health():
    return jsonify({"success": True, "message": "AgriTrace API is running", "timestamp": now_utc()})


@root_bp.get("/")
def home():
    return jsonify({"success": True, "message": "AgriTrace API", "version": "v1"})
