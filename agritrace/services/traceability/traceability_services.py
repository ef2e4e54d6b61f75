# agritrace/services/traceability/traceability_services.py
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING

from agritrace.errors import NotFound
from agritrace.models.traceability.traceability_models import (
    COLLECTION_AND_QUALITY,
    FARM_PRODUCTION,
    SALE,
    CollectionTraceViewModel,
    ProductSummary,
    TraceabilityViewModel,
    TraceEvent,
)
from agritrace.mongo import COLLECTIONS, CROPS, USERS, mongo
from agritrace.services.crop.crop_service import CropService


class TraceabilityService:
    """
    Compose a lot's journey from Mongo records:
      - crop (farm production)
      - every active aggregator collection of that crop, oldest first,
        each followed by its own internal chain and, if resold, the sale
    """

    # -------------------------
    # Public API
    # -------------------------
    @staticmethod
    def build_traceability(identifier: str) -> TraceabilityViewModel:
        crop = TraceabilityService._resolve_crop(identifier)
        if not crop:
            raise NotFound("Crop not found")

        collections = list(
            mongo.db[COLLECTIONS]
            .find({"sourceCrop": crop["_id"], "isActive": True})
            .sort([("collectionDate", ASCENDING), ("_id", ASCENDING)])
        )

        names = TraceabilityService._user_lookup(
            [crop.get("farmer")]
            + [c.get("aggregator") for c in collections]
            + [(c.get("buyer") or {}).get("buyerId") for c in collections]
        )

        vm = TraceabilityViewModel(
            product=ProductSummary(
                cropId=crop["_id"],
                traceabilityId=crop.get("traceabilityId", ""),
                name=crop.get("name", ""),
                variety=crop.get("variety", ""),
                category=crop.get("category", ""),
                status=crop.get("status", ""),
                qrCode=crop.get("qrCode"),
            ),
            collections=collections,
        )

        # 1) Farm production
        vm.chain.append(TraceabilityService._farm_event(crop, names))

        # 2) Each collection block stays contiguous
        for col in collections:
            vm.chain.extend(TraceabilityService._collection_events(col, names))

        return vm

    @staticmethod
    def build_collection_trace(identifier: str) -> CollectionTraceViewModel:
        """Single-collection view, looked up by original QR code, batch number or collection id."""
        col = mongo.db[COLLECTIONS].find_one({
            "$or": [
                {"traceability.originalQRCode": identifier},
                {"traceability.batchNumber": identifier},
                {"collectionId": identifier},
            ]
        })
        if not col:
            raise NotFound("Product not found in traceability system")

        crop = mongo.db[CROPS].find_one({"_id": col.get("sourceCrop")}) or {}
        buyer_id = (col.get("buyer") or {}).get("buyerId")
        names = TraceabilityService._user_lookup([col.get("farmer"), col.get("aggregator"), buyer_id])

        chain = [TraceabilityService._farm_event(crop, names, farmer_id=col.get("farmer"))]
        chain.extend(TraceabilityService._collection_events(col, names))

        qa = col.get("qualityAssessment") or {}
        return CollectionTraceViewModel(
            productInfo={
                "collectionId": col.get("collectionId"),
                "batchNumber": (col.get("traceability") or {}).get("batchNumber"),
                "cropName": crop.get("name"),
                "variety": crop.get("variety"),
                "currentStatus": col.get("status"),
                "qualityGrade": qa.get("overallGrade"),
            },
            traceabilityChain=chain,
            blockchain=col.get("blockchain"),
            qualityReport=qa,
        )

    # -------------------------
    # Lookups
    # -------------------------
    @staticmethod
    def _resolve_crop(identifier: str) -> Optional[Dict[str, Any]]:
        crop = CropService.find_by_identifier(identifier)
        if crop:
            return crop

        # batch number / collection id of a collection -> its source crop
        col = mongo.db[COLLECTIONS].find_one({
            "$or": [
                {"traceability.batchNumber": identifier},
                {"collectionId": identifier},
            ]
        })
        if col:
            return mongo.db[CROPS].find_one({"_id": col.get("sourceCrop")})
        return None

    @staticmethod
    def _user_lookup(ids: List[Any]) -> Dict[Any, Dict[str, Any]]:
        wanted = [i for i in ids if i is not None]
        if not wanted:
            return {}
        return {
            u["_id"]: u
            for u in mongo.db[USERS].find({"_id": {"$in": wanted}}, {"name": 1, "address": 1})
        }

    # -------------------------
    # Event builders
    # -------------------------
    @staticmethod
    def _farm_event(crop: Dict[str, Any], names, farmer_id=None) -> TraceEvent:
        farmer = names.get(farmer_id or crop.get("farmer")) or {}
        return TraceEvent(
            stage=FARM_PRODUCTION,
            actor=farmer.get("name"),
            location=crop.get("farmLocation"),
            timestamp=crop.get("harvestDate"),
            details={
                "cropName": crop.get("name"),
                "variety": crop.get("variety"),
                "category": crop.get("category"),
                "quality": crop.get("quality"),
                "isOrganic": crop.get("isOrganic", False),
                "harvestDate": crop.get("harvestDate"),
            },
        )

    @staticmethod
    def _collection_events(col: Dict[str, Any], names) -> List[TraceEvent]:
        qa = col.get("qualityAssessment") or {}
        aggregator = names.get(col.get("aggregator")) or {}

        events = [
            TraceEvent(
                stage=COLLECTION_AND_QUALITY,
                actor=aggregator.get("name"),
                location=col.get("collectionLocation"),
                timestamp=col.get("collectionDate"),
                details={
                    "collectionId": col.get("collectionId"),
                    "qualityGrade": qa.get("overallGrade"),
                    "qualityScore": qa.get("qualityScore"),
                    "collectedQuantity": col.get("collectedQuantity"),
                    "collectedUnit": col.get("collectedUnit"),
                    "aiAnalysis": qa.get("aiAnalysis"),
                },
            )
        ]

        for entry in (col.get("traceability") or {}).get("traceabilityChain") or []:
            events.append(TraceEvent(
                stage=entry.get("stage", ""),
                actor=entry.get("actor"),
                location=entry.get("location"),
                timestamp=entry.get("timestamp"),
                details={"action": entry.get("action"), "notes": entry.get("notes")},
            ))

        buyer = col.get("buyer") or {}
        if buyer.get("buyerId"):
            buyer_doc = names.get(buyer["buyerId"]) or {}
            events.append(TraceEvent(
                stage=SALE,
                actor=buyer_doc.get("name"),
                location=buyer_doc.get("address"),
                timestamp=buyer.get("saleDate"),
                details={
                    "salePrice": buyer.get("salePrice"),
                    "paymentStatus": buyer.get("paymentStatus"),
                    "buyerType": buyer.get("buyerType"),
                },
            ))

        return events
