# vidshare/app/models/base.py
"""
Declarative base and identifier helpers shared by every model
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def new_id() -> str:
    """Generate a fresh opaque identifier"""
    return str(uuid.uuid4())


def is_valid_id(value: Any) -> bool:
    """True when value is a well-formed identifier"""
    if not isinstance(value, str) or not value:
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def utcnow() -> datetime:
    """Naive UTC timestamp (SQLite drops tzinfo anyway)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
