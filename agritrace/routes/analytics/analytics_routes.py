# agritrace/routes/analytics/analytics_routes.py

from flask import Blueprint, jsonify
from flask_jwt_extended import get_jwt, get_jwt_identity, jwt_required

from agritrace.services.analytics.dashboard_service import DashboardService

analytics_bp = Blueprint("analytics", __name__, url_prefix="/api/v1/analytics")


@analytics_bp.get("/dashboard")
@jwt_required()
def dashboard():
    analytics = DashboardService.for_user(get_jwt_identity(), get_jwt().get("role"))
    return jsonify({"success": True, "analytics": analytics})
