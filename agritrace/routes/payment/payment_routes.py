# agritrace/routes/payment/payment_routes.py

from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required

from agritrace.models.payment.payment_models import PaymentCreateModel
from agritrace.services.payment.payment_service import PaymentService

payments_bp = Blueprint("payments", __name__, url_prefix="/api/v1/payments")


# ---------------------------------------------------------
# POST /api/v1/payments  (caller is the buyer)
# ---------------------------------------------------------
@payments_bp.post("")
@jwt_required()
def create_payment():
    payload = PaymentCreateModel(**(request.get_json(silent=True) or {}))
    tx = PaymentService.create(payload, get_jwt_identity())
    return jsonify({"success": True, "message": "Payment transaction created", "transaction": tx}), 201


# ---------------------------------------------------------
# GET /api/v1/payments/my-transactions
# ---------------------------------------------------------
@payments_bp.get("/my-transactions")
@jwt_required()
def my_transactions():
    transactions = PaymentService.my_transactions(get_jwt_identity())
    return jsonify({"success": True, "count": len(transactions), "transactions": transactions})
