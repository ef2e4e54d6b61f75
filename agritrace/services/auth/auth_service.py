# agritrace/services/auth/auth_service.py

from __future__ import annotations

from typing import Any, Dict, Tuple

from flask import current_app
from flask_bcrypt import Bcrypt
from flask_jwt_extended import create_access_token
from pymongo.errors import DuplicateKeyError

from agritrace.errors import Conflict, NotFound
from agritrace.models.auth.user_models import LoginModel, RegisterModel
from agritrace.mongo import USERS, mongo
from agritrace.utils import now_utc, public_user, to_object_id

bcrypt = Bcrypt()


class InvalidCredentials(Exception):
    pass


class AuthService:

    @staticmethod
    def register(payload: RegisterModel) -> Dict[str, Any]:
        users = mongo.db[USERS]

        if users.find_one({"email": payload.email}):
            raise Conflict("User already exists with this email")

        now = now_utc()
        doc = payload.model_dump(exclude_none=True)
        doc.update({
            "password": bcrypt.generate_password_hash(payload.password).decode("utf-8"),
            "isActive": True,
            "createdAt": now,
            "updatedAt": now,
        })

        try:
            inserted = users.insert_one(doc)
        except DuplicateKeyError:
            raise Conflict("User already exists with this email")

        doc["_id"] = inserted.inserted_id
        current_app.logger.info("Registered %s user %s", payload.role, payload.email)
        return public_user(doc)

    @staticmethod
    def login(payload: LoginModel) -> Tuple[Dict[str, Any], str]:
        user = mongo.db[USERS].find_one({"email": payload.email})

        # same failure for unknown email, inactive account and wrong password
        if not user or not user.get("isActive", True):
            raise InvalidCredentials()
        if not bcrypt.check_password_hash(user.get("password", ""), payload.password):
            raise InvalidCredentials()

        token = create_access_token(
            identity=str(user["_id"]),
            additional_claims={"role": user.get("role"), "email": user.get("email")},
        )
        return public_user(user), token

    @staticmethod
    def get_user(user_id: str) -> Dict[str, Any]:
        oid = to_object_id(user_id)
        user = mongo.db[USERS].find_one({"_id": oid}) if oid else None
        if not user:
            raise NotFound("User not found")
        return public_user(user)
