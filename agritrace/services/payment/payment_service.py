# agritrace/services/payment/payment_service.py

from typing import Any, Dict, List

from pymongo import DESCENDING

from agritrace.errors import NotFound
from agritrace.models.payment.payment_models import PaymentCreateModel
from agritrace.mongo import CROPS, TRANSACTIONS, USERS, mongo
from agritrace.services.crop.crop_service import CropService
from agritrace.services.users.user_service import UserService
from agritrace.utils import now_utc, public_user, to_object_id

PARTY_FIELDS = ("name", "email", "role", "phone")


class PaymentService:

    @staticmethod
    def _populate(tx: Dict[str, Any]) -> Dict[str, Any]:
        crop = mongo.db[CROPS].find_one({"_id": tx.get("crop")})
        if crop:
            tx["crop"] = {k: crop.get(k) for k in ("_id", "name", "variety", "traceabilityId")}
        for key in ("buyer", "seller", "aggregator"):
            if tx.get(key) is None:
                continue
            user = mongo.db[USERS].find_one({"_id": tx[key]})
            if user:
                tx[key] = public_user(user, PARTY_FIELDS)
        return tx

    # =========================
    # CREATE
    # =========================
    @staticmethod
    def create(payload: PaymentCreateModel, buyer_id: str) -> Dict[str, Any]:
        buyer = mongo.db[USERS].find_one({"_id": to_object_id(buyer_id)})
        if not buyer:
            raise NotFound("Buyer not found")
        seller = UserService.require_by_email(payload.sellerEmail, "Seller")
        aggregator = (
            UserService.require_by_email(payload.aggregatorEmail, "Aggregator")
            if payload.aggregatorEmail else None
        )
        crop = CropService.require_crop(payload.cropId)

        total = payload.totalAmount
        if total is None:
            total = payload.quantity * payload.pricePerUnit

        now = now_utc()
        doc = {
            "crop": crop["_id"],
            "buyer": buyer["_id"],
            "seller": seller["_id"],
            "aggregator": aggregator["_id"] if aggregator else None,
            "quantity": payload.quantity,
            "pricePerUnit": payload.pricePerUnit,
            "totalAmount": total,
            "status": payload.status,
            "paymentStatus": payload.paymentStatus,
            "paymentId": payload.paymentId,
            "blockchainTxHash": payload.blockchainTxHash,
            "notes": payload.notes or "",
            "createdAt": now,
            "updatedAt": now,
        }
        res = mongo.db[TRANSACTIONS].insert_one(doc)
        doc["_id"] = res.inserted_id
        return PaymentService._populate(doc)

    # =========================
    # READ
    # =========================
    @staticmethod
    def my_transactions(user_id: str) -> List[Dict[str, Any]]:
        """Transactions where the caller is the buyer or the seller, newest first."""
        oid = to_object_id(user_id)
        if not oid:
            return []
        cursor = (
            mongo.db[TRANSACTIONS]
            .find({"$or": [{"buyer": oid}, {"seller": oid}]})
            .sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
        )
        return [PaymentService._populate(tx) for tx in cursor]
