# agritrace/routes/order/order_routes.py

from flask import Blueprint, jsonify, request

from agritrace.models.order.order_models import (
    OrderCreateModel,
    OrderRatingModel,
    OrderStatusUpdateModel,
)
from agritrace.services.order.order_service import OrderService

order_bp = Blueprint("orders", __name__, url_prefix="/api/v1/orders")


@order_bp.post("")
def place_order():
    payload = OrderCreateModel(**(request.get_json(silent=True) or {}))
    order = OrderService.place_order(payload)
    return jsonify({"success": True, "message": "Order placed successfully", "order": order}), 201


@order_bp.get("/farmer/<email>")
def farmer_orders(email):
    return jsonify({"success": True, "orders": OrderService.list_for_farmer(email)})


@order_bp.get("/farmer/<email>/stats")
def farmer_order_stats(email):
    return jsonify({"success": True, "stats": OrderService.farmer_stats(email)})


@order_bp.get("/buyer/<email>")
def buyer_orders(email):
    return jsonify({"success": True, "orders": OrderService.list_for_buyer(email)})


@order_bp.get("/<order_id>")
def get_order(order_id):
    return jsonify({"success": True, "order": OrderService.get_order(order_id)})


@order_bp.put("/<order_id>/status")
def update_order_status(order_id):
    payload = OrderStatusUpdateModel(**(request.get_json(silent=True) or {}))
    order = OrderService.update_status(order_id, payload)
    return jsonify({"success": True, "message": "Order status updated successfully", "order": order})


@order_bp.put("/<order_id>/rating")
def rate_order(order_id):
    payload = OrderRatingModel(**(request.get_json(silent=True) or {}))
    order = OrderService.rate(order_id, payload)
    return jsonify({"success": True, "message": "Rating submitted successfully", "order": order})
