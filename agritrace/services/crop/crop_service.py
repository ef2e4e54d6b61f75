# agritrace/services/crop/crop_service.py

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from flask import current_app
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from agritrace.errors import NotFound, ServerError, ValidationError
from agritrace.models.crop.crop_models import CropUpdateModel, CropUploadModel
from agritrace.mongo import CROPS, USERS, mongo
from agritrace.services.users.user_service import UserService
from agritrace.utils import now_utc, pagination_block, public_user, timestamp_id, to_object_id

FARMER_PUBLIC_FIELDS = ("name", "email", "phone", "address")

_CATEGORY_BY_NAME = {
    "grains": ["rice", "wheat", "maize", "corn", "barley", "oats"],
    "vegetables": ["tomato", "potato", "onion", "carrot", "cabbage", "spinach"],
    "fruits": ["apple", "banana", "orange", "mango", "grapes"],
    "pulses": ["groundnut", "peanut", "lentil", "chickpea", "bean"],
    "spices": ["turmeric", "chili", "pepper", "coriander", "cumin"],
    "cash_crops": ["sugarcane", "cotton", "tobacco"],
}

SORTABLE_FIELDS = {"listedAt", "createdAt", "pricePerUnit", "quantity", "harvestDate", "name", "views"}


class CropService:

    # =========================
    # ID / CATEGORY HELPERS
    # =========================
    @staticmethod
    def generate_traceability_id() -> str:
        # CC-<base36 ms>-<5 random>
        return timestamp_id("CC")

    @staticmethod
    def category_from_name(name: str) -> str:
        lower = (name or "").strip().lower()
        for category, names in _CATEGORY_BY_NAME.items():
            if lower in names:
                return category
        return "grains"

    @staticmethod
    def _populate_farmer(crop: Dict[str, Any], fields=FARMER_PUBLIC_FIELDS) -> Dict[str, Any]:
        farmer = mongo.db[USERS].find_one({"_id": crop.get("farmer")})
        if farmer:
            crop["farmer"] = public_user(farmer, fields)
        return crop

    # =========================
    # CREATE
    # =========================
    @staticmethod
    def create_crop(payload: CropUploadModel) -> Dict[str, Any]:
        farmer = UserService.find_by_email(payload.farmerEmail)
        if not farmer or farmer.get("role") != "farmer":
            raise NotFound("Farmer not found")

        now = now_utc()
        data = payload.model_dump(exclude={"farmerEmail"}, exclude_none=True)

        doc = {
            **data,
            "variety": payload.variety or payload.name,
            "category": payload.category or CropService.category_from_name(payload.name),
            "farmer": farmer["_id"],
            "harvestDate": payload.harvestDate or now,
            "farmLocation": data.get("farmLocation") or farmer.get("address") or {},
            "quality": data.get("quality") or {"grade": "A"},
            "availability": "available",
            "listedAt": now if payload.status == "listed" else None,
            "views": 0,
            "isVerified": False,
            "isActive": True,
            "createdAt": now,
            "updatedAt": now,
        }

        for _ in range(3):
            doc["traceabilityId"] = CropService.generate_traceability_id()
            try:
                inserted = mongo.db[CROPS].insert_one(doc)
                break
            except DuplicateKeyError:
                current_app.logger.warning("traceabilityId collision on %s, retrying", doc["traceabilityId"])
                doc.pop("_id", None)
        else:
            raise ServerError("Could not allocate a traceability id")

        doc["_id"] = inserted.inserted_id
        current_app.logger.info("Crop %s listed by %s", doc["traceabilityId"], farmer.get("email"))
        return CropService._populate_farmer(doc)

    # =========================
    # READ
    # =========================
    @staticmethod
    def find_by_identifier(identifier: str) -> Optional[Dict[str, Any]]:
        """traceabilityId first, then the raw record key."""
        crop = mongo.db[CROPS].find_one({"traceabilityId": identifier})
        if crop:
            return crop
        oid = to_object_id(identifier)
        return mongo.db[CROPS].find_one({"_id": oid}) if oid else None

    @staticmethod
    def require_crop(crop_id: str) -> Dict[str, Any]:
        oid = to_object_id(crop_id)
        crop = mongo.db[CROPS].find_one({"_id": oid}) if oid else None
        if not crop:
            raise NotFound("Crop not found")
        return crop

    @staticmethod
    def get_crop(crop_id: str) -> Dict[str, Any]:
        oid = to_object_id(crop_id)
        crop = None
        if oid:
            crop = mongo.db[CROPS].find_one_and_update(
                {"_id": oid, "isActive": True},
                {"$inc": {"views": 1}},
                return_document=ReturnDocument.AFTER,
            )
        if not crop:
            raise NotFound("Crop not found")
        return CropService._populate_farmer(crop)

    @staticmethod
    def marketplace(filters: Dict[str, Any], page: int = 1, limit: int = 12,
                    sort_by: str = "listedAt", sort_order: str = "desc") -> Dict[str, Any]:
        query: Dict[str, Any] = {"status": "listed", "isActive": True}

        if filters.get("category"):
            query["category"] = filters["category"]
        if filters.get("isOrganic") in ("true", True):
            query["isOrganic"] = True

        price: Dict[str, float] = {}
        try:
            if filters.get("minPrice"):
                price["$gte"] = float(filters["minPrice"])
            if filters.get("maxPrice"):
                price["$lte"] = float(filters["maxPrice"])
        except ValueError:
            raise ValidationError("minPrice/maxPrice must be numbers")
        if price:
            query["pricePerUnit"] = price

        ors: List[Dict[str, Any]] = []
        if filters.get("location"):
            rx = {"$regex": re.escape(filters["location"]), "$options": "i"}
            ors.append({"$or": [{"farmLocation.district": rx}, {"farmLocation.state": rx}]})
        if filters.get("search"):
            rx = {"$regex": re.escape(filters["search"]), "$options": "i"}
            ors.append({"$or": [{"name": rx}, {"variety": rx}, {"description": rx}]})
        if ors:
            query["$and"] = ors

        if sort_by not in SORTABLE_FIELDS:
            sort_by = "listedAt"
        direction = DESCENDING if sort_order == "desc" else ASCENDING

        col = mongo.db[CROPS]
        total = col.count_documents(query)
        crops = [
            CropService._populate_farmer(c, ("name", "phone", "address"))
            for c in col.find(query).sort([(sort_by, direction), ("_id", direction)])
            .skip((page - 1) * limit).limit(limit)
        ]

        return {"crops": crops, "pagination": pagination_block(page, limit, total)}

    @staticmethod
    def list_for_farmer(email: str, status: Optional[str] = None,
                        page: int = 1, limit: int = 10) -> Dict[str, Any]:
        farmer = UserService.require_by_email(email, "Farmer")

        query: Dict[str, Any] = {"farmer": farmer["_id"], "isActive": True}
        if status and status != "all":
            query["status"] = status

        col = mongo.db[CROPS]
        total = col.count_documents(query)
        crops = list(
            col.find(query).sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
            .skip((page - 1) * limit).limit(limit)
        )

        total_revenue = sum(
            float(c.get("quantity") or 0) * float(c.get("pricePerUnit") or 0)
            for c in crops if c.get("status") == "sold"
        )

        return {
            "crops": crops,
            "stats": {
                "totalCrops": total,
                "totalRevenue": total_revenue,
                "activeCrops": sum(1 for c in crops if c.get("status") == "listed"),
            },
            "pagination": pagination_block(page, limit, total),
        }

    # =========================
    # UPDATE / SOFT DELETE
    # =========================
    @staticmethod
    def update_crop(crop_id: str, payload: CropUpdateModel) -> Dict[str, Any]:
        fields = payload.model_dump(exclude_none=True)
        if not fields:
            raise ValidationError("Nothing to update")

        fields["updatedAt"] = now_utc()
        if fields.get("status") == "listed":
            fields["listedAt"] = fields["updatedAt"]

        oid = to_object_id(crop_id)
        crop = None
        if oid:
            crop = mongo.db[CROPS].find_one_and_update(
                {"_id": oid, "isActive": True},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            )
        if not crop:
            raise NotFound("Crop not found")
        return crop

    @staticmethod
    def deactivate_crop(crop_id: str) -> Dict[str, Any]:
        oid = to_object_id(crop_id)
        crop = None
        if oid:
            crop = mongo.db[CROPS].find_one_and_update(
                {"_id": oid},
                {"$set": {"isActive": False, "updatedAt": now_utc()}},
                return_document=ReturnDocument.AFTER,
            )
        if not crop:
            raise NotFound("Crop not found")
        return crop

    # =========================
    # COLLECTION CLAIM (used by the collection ledger)
    # =========================
    @staticmethod
    def claim_for_collection(crop_id) -> Optional[Dict[str, Any]]:
        """listed -> sold in one conditional write; None if someone else got there first."""
        return mongo.db[CROPS].find_one_and_update(
            {"_id": crop_id, "status": "listed"},
            {"$set": {"status": "sold", "availability": "sold_out", "updatedAt": now_utc()}},
            return_document=ReturnDocument.AFTER,
        )

    @staticmethod
    def release_claim(crop_id) -> None:
        mongo.db[CROPS].update_one(
            {"_id": crop_id, "status": "sold"},
            {"$set": {"status": "listed", "availability": "available", "updatedAt": now_utc()}},
        )

    @staticmethod
    def set_qr_code(crop_id, qr_code: Dict[str, Any]) -> Dict[str, Any]:
        return mongo.db[CROPS].find_one_and_update(
            {"_id": crop_id},
            {"$set": {"qrCode": qr_code, "updatedAt": now_utc()}},
            return_document=ReturnDocument.AFTER,
        )
