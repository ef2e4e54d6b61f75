# agritrace/services/aggregator/collection_service.py

from __future__ import annotations

import base64
import json
from collections import Counter
from io import BytesIO
from typing import Any, Dict, List, Optional

import qrcode
from flask import current_app
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from agritrace.blockchain import get_ledger_writer
from agritrace.errors import InvalidState, NotFound, ServerError, Unauthorized
from agritrace.models.aggregator.collection_models import (
    CollectCropModel,
    RecordSaleModel,
    TraceabilityEntry,
)
from agritrace.mongo import COLLECTIONS, CROPS, TRANSACTIONS, USERS, mongo
from agritrace.services.aggregator.quality_service import get_quality_inspector
from agritrace.services.crop.crop_service import CropService
from agritrace.services.users.user_service import UserService
from agritrace.utils import (
    now_utc,
    pagination_block,
    public_user,
    random_base36,
    timestamp_id,
    to_object_id,
)

# Edges used only when ENFORCE_STATUS_TRANSITIONS is on
COLLECTION_TRANSITIONS = {
    "collected": {"quality_checked", "stored", "rejected"},
    "quality_checked": {"stored", "processed", "ready_for_sale", "rejected"},
    "stored": {"processed", "ready_for_sale", "rejected"},
    "processed": {"stored", "ready_for_sale", "rejected"},
    "ready_for_sale": {"sold", "stored", "rejected"},
    "sold": {"in_transit", "delivered"},
    "in_transit": {"delivered"},
    "delivered": set(),
    "rejected": set(),
}

SORTABLE_FIELDS = {"collectionDate", "collectedQuantity", "status", "createdAt"}


class QualityCheckFailed(ServerError):
    default_message = "Quality assessment failed"


class CollectionService:

    # =========================
    # ID GENERATORS
    # =========================
    @staticmethod
    def generate_collection_id() -> str:
        return timestamp_id("AGG")

    @staticmethod
    def generate_batch_number() -> str:
        # BATCH-YYYYMMDD-XXXX
        return f"BATCH-{now_utc().strftime('%Y%m%d')}-{random_base36(4)}".upper()

    @staticmethod
    def render_qr_data_url(payload: Dict[str, Any]) -> str:
        img = qrcode.make(json.dumps(payload, default=str))
        buf = BytesIO()
        img.save(buf, format="PNG")
        return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")

    # =========================
    # LOOKUPS
    # =========================
    @staticmethod
    def find_collection(identifier: str) -> Optional[Dict[str, Any]]:
        col = mongo.db[COLLECTIONS]
        doc = col.find_one({"collectionId": identifier})
        if doc:
            return doc
        oid = to_object_id(identifier)
        return col.find_one({"_id": oid}) if oid else None

    @staticmethod
    def _require_owned(identifier: str, aggregator_id) -> Dict[str, Any]:
        doc = CollectionService.find_collection(identifier)
        if not doc or not doc.get("isActive", True):
            raise NotFound("Collection not found")
        if str(doc.get("aggregator")) != str(aggregator_id):
            raise Unauthorized("Not authorized to access this collection")
        return doc

    # =========================
    # SCAN
    # =========================
    @staticmethod
    def scan(qr_code: str, scanned_location: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Resolve a farmer's QR (JSON payload or bare traceability id) to a collectable crop."""
        crop = None
        try:
            data = json.loads(qr_code)
        except ValueError:
            data = None

        if isinstance(data, dict):
            ident = data.get("cropId") or data.get("traceabilityId")
            if ident:
                crop = CropService.find_by_identifier(str(ident))
        else:
            crop = CropService.find_by_identifier(qr_code.strip())

        if not crop:
            raise NotFound("Invalid QR code or crop not found")
        if crop.get("status") != "listed":
            raise InvalidState("Crop is not available for collection")

        farmer = mongo.db[USERS].find_one({"_id": crop.get("farmer")}) or {}

        return {
            "crop": {
                "id": crop["_id"],
                "name": crop.get("name"),
                "variety": crop.get("variety"),
                "category": crop.get("category"),
                "quantity": crop.get("quantity"),
                "unit": crop.get("unit"),
                "pricePerUnit": crop.get("pricePerUnit"),
                "harvestDate": crop.get("harvestDate"),
                "farmLocation": crop.get("farmLocation"),
                "quality": crop.get("quality"),
                "isOrganic": crop.get("isOrganic", False),
                "certifications": crop.get("certifications", []),
                "images": crop.get("images", []),
                "traceabilityId": crop.get("traceabilityId"),
            },
            "farmer": {
                "id": farmer.get("_id"),
                "name": farmer.get("name"),
                "phone": farmer.get("phone"),
                "address": farmer.get("address"),
            },
            "scannedAt": now_utc(),
            "scannedLocation": scanned_location,
        }

    # =========================
    # COLLECT
    # =========================
    @staticmethod
    def collect(payload: CollectCropModel, aggregator_id, image_urls: List[str]) -> Dict[str, Any]:
        aggregator = mongo.db[USERS].find_one({"_id": to_object_id(aggregator_id)})
        if not aggregator or aggregator.get("role") != "aggregator":
            raise Unauthorized("Only aggregators can collect crops")

        crop = CropService.require_crop(payload.cropId)
        if crop.get("status") != "listed":
            raise InvalidState("Crop is not available for collection")

        # (a) quality check; nothing is written if it fails
        try:
            assessment = get_quality_inspector().assess(image_urls)
        except Exception as e:
            current_app.logger.error("Quality assessment failed for crop %s: %s", crop["_id"], e)
            raise QualityCheckFailed()

        now = now_utc()
        location = payload.collectionLocation.model_dump(exclude_none=True)
        collection_id = CollectionService.generate_collection_id()
        batch_number = CollectionService.generate_batch_number()

        # (b) QR for the aggregated batch
        batch_qr = CollectionService.render_qr_data_url({
            "collectionId": collection_id,
            "batchNumber": batch_number,
            "originalCrop": str(crop["_id"]),
            "aggregator": aggregator.get("name"),
            "collectionDate": now.isoformat(),
            "qualityGrade": assessment.overallGrade,
            "batchQuantity": payload.collectedQuantity,
            "traceabilityChain": [crop.get("traceabilityId")],
        })

        # (c) claim the lot; only one aggregator can win
        if not CropService.claim_for_collection(crop["_id"]):
            raise InvalidState("Crop is not available for collection")

        initial_entry = TraceabilityEntry(
            stage="collection",
            actor=aggregator.get("name") or str(aggregator["_id"]),
            timestamp=now,
            location=location.get("district", ""),
            action="Crop collected from farmer",
            notes=payload.notes or "",
        )

        doc = {
            "collectionId": collection_id,
            "aggregator": aggregator["_id"],
            "sourceCrop": crop["_id"],
            "farmer": crop.get("farmer"),
            "collectedQuantity": payload.collectedQuantity,
            "collectedUnit": payload.collectedUnit,
            "collectionDate": now,
            "collectionLocation": location,
            "qualityAssessment": assessment.model_dump(),
            "traceability": {
                "originalQRCode": (crop.get("qrCode") or {}).get("code") or crop.get("traceabilityId"),
                "aggregatorQRCode": batch_qr,
                "batchNumber": batch_number,
                "traceabilityChain": [initial_entry.model_dump()],
            },
            "storage": payload.storageDetails.model_dump(exclude_none=True),
            "processing": {"isProcessed": False},
            "marketInfo": {
                "purchasePrice": payload.purchasePrice,
                "pricePerUnit": payload.purchasePrice / payload.collectedQuantity,
                "totalValue": payload.purchasePrice,
            },
            "transport": {"isDelivered": False},
            "status": "collected",
            "isActive": True,
            "notes": payload.notes or "",
            "createdAt": now,
            "updatedAt": now,
        }

        # (d) persist; undo the claim if the insert does not land
        try:
            inserted = mongo.db[COLLECTIONS].insert_one(doc)
        except PyMongoError:
            current_app.logger.error("Collection insert failed, releasing crop %s", crop["_id"])
            CropService.release_claim(crop["_id"])
            raise
        doc["_id"] = inserted.inserted_id

        # (e) ledger receipt
        receipt = None
        try:
            receipt = get_ledger_writer().write({
                "collectionId": collection_id,
                "cropId": str(crop["_id"]),
                "aggregatorId": str(aggregator["_id"]),
                "qualityGrade": assessment.overallGrade,
                "quantity": payload.collectedQuantity,
                "timestamp": now.isoformat(),
            }).model_dump()
            mongo.db[COLLECTIONS].update_one({"_id": doc["_id"]}, {"$set": {"blockchain": receipt}})
            current_app.logger.info("Collection %s anchored in tx %s", collection_id, receipt["transactionHash"])
        except Exception as e:
            current_app.logger.warning("Ledger write failed for %s: %s", collection_id, e)

        # (f) quality step goes on the chain
        collection = CollectionService.add_traceability_entry(
            doc,
            "quality_checked",
            "AI quality analysis completed",
            f"Quality Grade: {assessment.overallGrade}, Score: {assessment.qualityScore}/100",
        )

        analysis = assessment.aiAnalysis
        return {
            "collection": collection,
            "qualityReport": {
                "grade": assessment.overallGrade,
                "score": assessment.qualityScore,
                "aiAnalysis": analysis.model_dump(),
                "defects": [d.model_dump() for d in analysis.defectDetection],
                "compliance": {
                    "organic": analysis.organicCompliance,
                    "pesticides": not analysis.pesticidesDetected,
                    "purity": analysis.purityLevel,
                },
            },
            "blockchain": receipt,
            "newQRCode": batch_qr,
        }

    # =========================
    # TRACEABILITY CHAIN / STATUS
    # =========================
    @staticmethod
    def add_traceability_entry(collection: Dict[str, Any], stage: str, action: str,
                               notes: str = "", extra_set: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Append one chain entry; `status` is only touched through extra_set."""
        entry = TraceabilityEntry(
            stage=stage,
            actor=str(collection.get("aggregator")),
            timestamp=now_utc(),
            location=(collection.get("collectionLocation") or {}).get("district", ""),
            action=action,
            notes=notes or "",
        )
        update_set = {"updatedAt": entry.timestamp}
        if extra_set:
            update_set.update(extra_set)

        updated = mongo.db[COLLECTIONS].find_one_and_update(
            {"_id": collection["_id"]},
            {"$push": {"traceability.traceabilityChain": entry.model_dump()}, "$set": update_set},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise NotFound("Collection not found")
        return updated

    @staticmethod
    def check_transition(old_status: str, new_status: str) -> None:
        if not current_app.config.get("ENFORCE_STATUS_TRANSITIONS"):
            return
        if new_status not in COLLECTION_TRANSITIONS.get(old_status, set()):
            raise InvalidState(f"Cannot move collection from {old_status} to {new_status}")

    @staticmethod
    def update_status(identifier: str, new_status: str, notes: str, aggregator_id,
                      extra_set: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        collection = CollectionService._require_owned(identifier, aggregator_id)
        old_status = collection.get("status")
        CollectionService.check_transition(old_status, new_status)

        update_set = {"status": new_status}
        if extra_set:
            update_set.update(extra_set)

        return CollectionService.add_traceability_entry(
            collection,
            new_status,
            f"Status changed from {old_status} to {new_status}",
            notes,
            extra_set=update_set,
        )

    @staticmethod
    def record_sale(identifier: str, payload: RecordSaleModel, aggregator_id) -> Dict[str, Any]:
        collection = CollectionService._require_owned(identifier, aggregator_id)
        if (collection.get("buyer") or {}).get("buyerId"):
            raise InvalidState("Collection has already been sold")

        buyer = UserService.require_by_email(payload.buyerEmail, "Buyer")
        now = now_utc()
        buyer_block = {
            "buyerId": buyer["_id"],
            "buyerType": payload.buyerType,
            "saleDate": now,
            "salePrice": payload.salePrice,
            "paymentStatus": payload.paymentStatus,
        }

        updated = CollectionService.update_status(
            identifier, "sold", payload.notes or f"Sold to {buyer.get('name')}", aggregator_id,
            extra_set={"buyer": buyer_block},
        )

        qty = float(collection.get("collectedQuantity") or 0)
        mongo.db[TRANSACTIONS].insert_one({
            "crop": collection.get("sourceCrop"),
            "buyer": buyer["_id"],
            "seller": collection.get("aggregator"),
            "aggregator": collection.get("aggregator"),
            "collection": collection["_id"],
            "quantity": qty,
            "pricePerUnit": payload.salePrice / qty if qty else 0,
            "totalAmount": payload.salePrice,
            "status": "confirmed",
            "paymentStatus": payload.paymentStatus,
            "blockchainTxHash": (collection.get("blockchain") or {}).get("transactionHash"),
            "notes": payload.notes or "",
            "createdAt": now,
            "updatedAt": now,
        })
        return updated

    # =========================
    # READ
    # =========================
    @staticmethod
    def _populate(collection: Dict[str, Any]) -> Dict[str, Any]:
        crop = mongo.db[CROPS].find_one({"_id": collection.get("sourceCrop")})
        if crop:
            collection["sourceCrop"] = {
                "_id": crop["_id"],
                "name": crop.get("name"),
                "variety": crop.get("variety"),
                "category": crop.get("category"),
                "images": crop.get("images", []),
                "traceabilityId": crop.get("traceabilityId"),
            }
        farmer = mongo.db[USERS].find_one({"_id": collection.get("farmer")})
        if farmer:
            collection["farmer"] = public_user(farmer, ("name", "phone", "address"))
        return collection

    @staticmethod
    def list_collections(aggregator_id, status: Optional[str] = None, page: int = 1, limit: int = 10,
                         sort_by: str = "collectionDate", sort_order: str = "desc") -> Dict[str, Any]:
        query: Dict[str, Any] = {"aggregator": to_object_id(aggregator_id), "isActive": True}
        if status:
            query["status"] = status

        if sort_by not in SORTABLE_FIELDS:
            sort_by = "collectionDate"
        direction = DESCENDING if sort_order == "desc" else ASCENDING

        col = mongo.db[COLLECTIONS]
        total = col.count_documents(query)
        items = [
            CollectionService._populate(c)
            for c in col.find(query).sort([(sort_by, direction), ("_id", direction)])
            .skip((page - 1) * limit).limit(limit)
        ]
        return {"collections": items, "pagination": pagination_block(page, limit, total)}

    @staticmethod
    def get_collection(identifier: str, aggregator_id) -> Dict[str, Any]:
        return CollectionService._populate(CollectionService._require_owned(identifier, aggregator_id))

    @staticmethod
    def analytics(aggregator_id, start=None, end=None) -> Dict[str, Any]:
        query: Dict[str, Any] = {"aggregator": to_object_id(aggregator_id), "isActive": True}
        if start and end:
            query["collectionDate"] = {"$gte": start, "$lte": end}

        docs = list(mongo.db[COLLECTIONS].find(query).sort([("collectionDate", DESCENDING), ("_id", DESCENDING)]))

        scores = [
            float(d["qualityAssessment"]["qualityScore"])
            for d in docs if (d.get("qualityAssessment") or {}).get("qualityScore") is not None
        ]

        by_grade: Dict[str, List[float]] = {}
        for d in docs:
            qa = d.get("qualityAssessment") or {}
            by_grade.setdefault(qa.get("overallGrade"), []).append(float(qa.get("qualityScore") or 0))

        return {
            "analytics": {
                "totalCollections": len(docs),
                "totalQuantity": sum(float(d.get("collectedQuantity") or 0) for d in docs),
                "totalValue": sum(float((d.get("marketInfo") or {}).get("totalValue") or 0) for d in docs),
                "averageQuality": sum(scores) / len(scores) if scores else 0,
                "statusBreakdown": dict(Counter(d.get("status") for d in docs)),
            },
            "recentCollections": [CollectionService._populate(d) for d in docs[:5]],
            "qualityDistribution": [
                {"grade": grade, "count": len(vals), "avgScore": sum(vals) / len(vals)}
                for grade, vals in by_grade.items()
            ],
        }
