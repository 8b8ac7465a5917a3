"""Column helpers shared by the ORM models."""

from __future__ import annotations

import enum
from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import Enum


def utcnow() -> datetime:
    """Timezone-aware current time used for every timestamp column."""
    return datetime.now(UTC)


def new_id() -> str:
    """Return a fresh string identifier for community-scoped rows."""
    return str(uuid4())


def str_enum(enum_cls: type[enum.Enum], length: int = 16) -> Enum:
    """Store a string enum by value in a portable VARCHAR column."""
    return Enum(
        enum_cls,
        native_enum=False,
        length=length,
        validate_strings=True,
        values_callable=lambda members: [member.value for member in members],
    )
