# agritrace/utils.py
from __future__ import annotations

import secrets
import string
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from bson import ObjectId

_BASE36 = string.digits + string.ascii_lowercase


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def to_base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_BASE36[r])
    return "".join(reversed(out))


def random_base36(length: int) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def timestamp_id(prefix: str, random_len: int = 5) -> str:
    """PREFIX-<base36 ms timestamp>-<random>, upper-cased."""
    ms = int(now_utc().timestamp() * 1000)
    return f"{prefix}-{to_base36(ms)}-{random_base36(random_len)}".upper()


def to_object_id(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if value is not None and ObjectId.is_valid(str(value)):
        return ObjectId(str(value))
    return None


def parse_pagination(args, default_limit: int = 10, max_limit: int = 100) -> Tuple[int, int]:
    try:
        page = max(int(args.get("page", 1)), 1)
    except (TypeError, ValueError):
        page = 1
    try:
        limit = min(max(int(args.get("limit", default_limit)), 1), max_limit)
    except (TypeError, ValueError):
        limit = default_limit
    return page, limit


def pagination_block(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "current": page,
        "pages": (total + limit - 1) // limit if limit else 0,
        "total": total,
    }


def public_user(user: Optional[Dict[str, Any]], fields: Tuple[str, ...] = ()) -> Optional[Dict[str, Any]]:
    """User document without its password hash, optionally narrowed to `fields`."""
    if not user:
        return None
    if fields:
        return {k: user.get(k) for k in ("_id",) + fields}
    return {k: v for k, v in user.items() if k != "password"}
