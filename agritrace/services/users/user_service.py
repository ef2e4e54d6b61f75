# agritrace/services/users/user_service.py

from typing import Any, Dict, Optional

from pymongo import ReturnDocument

from agritrace.errors import NotFound, ValidationError
from agritrace.models.auth.user_models import LocationUpdateModel, ProfileUpdateModel
from agritrace.mongo import USERS, mongo
from agritrace.utils import now_utc, public_user


class UserService:

    @staticmethod
    def find_by_email(email: Optional[str]) -> Optional[Dict[str, Any]]:
        if not email:
            return None
        return mongo.db[USERS].find_one({"email": email.strip().lower()})

    @staticmethod
    def require_by_email(email: Optional[str], label: str = "User") -> Dict[str, Any]:
        user = UserService.find_by_email(email)
        if not user:
            raise NotFound(f"{label} not found")
        return user

    @staticmethod
    def get_profile(email: str) -> Dict[str, Any]:
        return public_user(UserService.require_by_email(email))

    @staticmethod
    def _update(email: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        if not email:
            raise ValidationError("Email is required", errors=[{"field": "email", "message": "required"}])

        fields["updatedAt"] = now_utc()
        user = mongo.db[USERS].find_one_and_update(
            {"email": email.strip().lower()},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        if not user:
            raise NotFound("User not found")
        return public_user(user)

    @staticmethod
    def update_profile(email: str, payload: ProfileUpdateModel) -> Dict[str, Any]:
        return UserService._update(email, payload.model_dump(exclude_none=True))

    @staticmethod
    def update_location(payload: LocationUpdateModel) -> Dict[str, Any]:
        return UserService._update(payload.email, {"address": payload.address.model_dump()})
