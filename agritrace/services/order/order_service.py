# agritrace/services/order/order_service.py

from datetime import timedelta
from typing import Any, Dict, List

from flask import current_app
from pymongo import DESCENDING, ReturnDocument

from agritrace.errors import InvalidState, NotFound, Unauthorized
from agritrace.models.order.order_models import (
    OrderCreateModel,
    OrderRatingModel,
    OrderStatusUpdateModel,
)
from agritrace.mongo import ORDERS, mongo
from agritrace.services.crop.crop_service import CropService
from agritrace.services.users.user_service import UserService
from agritrace.utils import now_utc, timestamp_id

ORDER_TRANSITIONS = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"in_transit", "cancelled", "disputed"},
    "in_transit": {"delivered", "disputed"},
    "delivered": {"disputed"},
    "disputed": {"confirmed", "cancelled", "delivered"},
    "cancelled": set(),
}

DEFAULT_DELIVERY_DAYS = 3


class OrderService:

    # =========================
    # ID GENERATORS
    # =========================
    @staticmethod
    def generate_order_id() -> str:
        # ORD-<base36 ms>-<5 random>
        return timestamp_id("ORD")

    # =========================
    # CREATE
    # =========================
    @staticmethod
    def place_order(payload: OrderCreateModel) -> Dict[str, Any]:
        farmer = UserService.require_by_email(payload.farmerEmail, "Farmer")
        buyer = UserService.require_by_email(payload.buyerEmail, "Buyer")
        crop = CropService.require_crop(payload.cropId)

        now = now_utc()
        delivery = payload.deliveryAddress.model_dump(exclude_none=True) if payload.deliveryAddress else {}

        doc = {
            "orderId": OrderService.generate_order_id(),
            "cropId": crop["_id"],
            "cropName": payload.cropName or crop.get("name"),
            "farmerId": farmer["_id"],
            "farmerName": farmer.get("name"),
            "farmerEmail": farmer.get("email"),
            "buyerId": buyer["_id"],
            "buyerName": buyer.get("name"),
            "buyerEmail": buyer.get("email"),
            "buyerPhone": buyer.get("phone"),
            "quantity": payload.quantity,
            "unit": payload.unit,
            "pricePerUnit": payload.pricePerUnit,
            "totalAmount": payload.quantity * payload.pricePerUnit,
            "status": "pending",
            "deliveryAddress": delivery,
            "paymentStatus": "pending",
            "paymentMethod": payload.paymentMethod,
            "advancePayment": payload.advancePayment,
            "orderDate": now,
            "expectedDeliveryDate": payload.expectedDeliveryDate or now + timedelta(days=DEFAULT_DELIVERY_DAYS),
            "notes": payload.notes or "",
            "qualityRequirements": (
                payload.qualityRequirements.model_dump(exclude_none=True) if payload.qualityRequirements else {}
            ),
            "trackingUpdates": [{
                "status": "pending",
                "message": "Order placed successfully",
                "timestamp": now,
                "location": delivery.get("district", ""),
            }],
            "createdAt": now,
            "updatedAt": now,
        }

        inserted = mongo.db[ORDERS].insert_one(doc)
        doc["_id"] = inserted.inserted_id
        current_app.logger.info("Order %s placed by %s", doc["orderId"], buyer.get("email"))
        return doc

    # =========================
    # READ
    # =========================
    @staticmethod
    def get_order(order_id: str) -> Dict[str, Any]:
        order = mongo.db[ORDERS].find_one({"orderId": order_id})
        if not order:
            raise NotFound("Order not found")
        return order

    @staticmethod
    def _list(query: Dict[str, Any]) -> List[Dict[str, Any]]:
        return list(mongo.db[ORDERS].find(query).sort([("orderDate", DESCENDING), ("_id", DESCENDING)]))

    @staticmethod
    def list_for_farmer(email: str) -> List[Dict[str, Any]]:
        farmer = UserService.require_by_email(email, "Farmer")
        return OrderService._list({"farmerId": farmer["_id"]})

    @staticmethod
    def list_for_buyer(email: str) -> List[Dict[str, Any]]:
        buyer = UserService.require_by_email(email, "Buyer")
        return OrderService._list({"buyerId": buyer["_id"]})

    @staticmethod
    def farmer_stats(email: str) -> Dict[str, Any]:
        orders = OrderService.list_for_farmer(email)
        delivered = [o for o in orders if o.get("status") == "delivered"]
        return {
            "totalOrders": len(orders),
            "pendingOrders": sum(1 for o in orders if o.get("status") == "pending"),
            "deliveredOrders": len(delivered),
            "totalRevenue": sum(float(o.get("totalAmount") or 0) for o in delivered),
            "recentOrders": orders[:5],
        }

    # =========================
    # UPDATE
    # =========================
    @staticmethod
    def _require_party(order: Dict[str, Any], email: str) -> str:
        """Returns 'farmer' or 'buyer' for the caller."""
        email = (email or "").strip().lower()
        if email and email == (order.get("farmerEmail") or "").lower():
            return "farmer"
        if email and email == (order.get("buyerEmail") or "").lower():
            return "buyer"
        raise Unauthorized("Not authorized to update this order")

    @staticmethod
    def update_status(order_id: str, payload: OrderStatusUpdateModel) -> Dict[str, Any]:
        order = OrderService.get_order(order_id)
        OrderService._require_party(order, payload.userEmail)

        old_status = order.get("status")
        if current_app.config.get("ENFORCE_STATUS_TRANSITIONS") and \
                payload.status not in ORDER_TRANSITIONS.get(old_status, set()):
            raise InvalidState(f"Cannot move order from {old_status} to {payload.status}")

        now = now_utc()
        update_set: Dict[str, Any] = {"status": payload.status, "updatedAt": now}
        if payload.status == "delivered" and not order.get("actualDeliveryDate"):
            update_set["actualDeliveryDate"] = now

        tracking = {
            "status": payload.status,
            "message": payload.message or f"Order status updated to {payload.status}",
            "timestamp": now,
            "location": payload.location or "",
        }

        updated = mongo.db[ORDERS].find_one_and_update(
            {"_id": order["_id"]},
            {"$set": update_set, "$push": {"trackingUpdates": tracking}},
            return_document=ReturnDocument.AFTER,
        )
        current_app.logger.info("Order %s: %s -> %s", order_id, old_status, payload.status)
        return updated

    @staticmethod
    def rate(order_id: str, payload: OrderRatingModel) -> Dict[str, Any]:
        order = OrderService.get_order(order_id)
        party = OrderService._require_party(order, payload.userEmail)

        # farmer rates the buyer, buyer rates the farmer
        if (party, payload.ratingType) not in (("farmer", "buyer"), ("buyer", "farmer")):
            raise Unauthorized("Not authorized to rate this order")

        field = "buyerRating" if payload.ratingType == "buyer" else "farmerRating"
        return mongo.db[ORDERS].find_one_and_update(
            {"_id": order["_id"]},
            {"$set": {
                field: {"rating": payload.rating, "feedback": payload.feedback or ""},
                "updatedAt": now_utc(),
            }},
            return_document=ReturnDocument.AFTER,
        )
