"""
Shared model plumbing.

Every model serializes with camelCase keys so the persisted document matches
the format the presentation layer already reads, while Python code uses
snake_case attribute names.
"""

from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


ZERO = Decimal("0")


class LedgerModel(BaseModel):
    """Base for all RF Manager models."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so every timestamp is comparable."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
