# agritrace/services/analytics/dashboard_service.py
"""
Role-aware dashboard counters for the signed-in user.

farmer      crop totals and sell-through
aggregator  the collection analytics totals
admin       platform-wide counts
others      empty
"""

from typing import Any, Dict, Optional

from agritrace.mongo import CROPS, TRANSACTIONS, USERS, mongo
from agritrace.services.aggregator.collection_service import CollectionService
from agritrace.utils import to_object_id

ACTIVE_CROP_STATUSES = ("listed", "reserved")


class DashboardService:

    @staticmethod
    def farmer(user_id: str) -> Dict[str, Any]:
        crops = mongo.db[CROPS]
        base = {"farmer": to_object_id(user_id)}
        total = crops.count_documents(base)
        sold = crops.count_documents({**base, "status": "sold"})
        active = crops.count_documents({**base, "status": {"$in": list(ACTIVE_CROP_STATUSES)}})
        return {
            "totalCrops": total,
            "soldCrops": sold,
            "activeCrops": active,
            "successRate": (sold / total) * 100 if total else 0,
        }

    @staticmethod
    def aggregator(user_id: str) -> Dict[str, Any]:
        return CollectionService.analytics(user_id)["analytics"]

    @staticmethod
    def admin() -> Dict[str, Any]:
        return {
            "totalUsers": mongo.db[USERS].count_documents({}),
            "totalCrops": mongo.db[CROPS].count_documents({}),
            "totalTransactions": mongo.db[TRANSACTIONS].count_documents({}),
            "activeUsers": mongo.db[USERS].count_documents({"isActive": True}),
        }

    @staticmethod
    def for_user(user_id: str, role: Optional[str]) -> Dict[str, Any]:
        role = (role or "").lower()
        if role == "farmer":
            return DashboardService.farmer(user_id)
        if role == "aggregator":
            return DashboardService.aggregator(user_id)
        if role == "admin":
            return DashboardService.admin()
        return {}
