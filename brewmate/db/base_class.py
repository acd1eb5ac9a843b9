"""SQLAlchemy declarative base for the personalization tables."""

import typing

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

JSON_COMPATIBLE = JSON().with_variant(JSONB, "postgresql")
JsonPayload = dict[str, typing.Any]


class Base(DeclarativeBase):
    """Maps ``dict`` payload annotations to JSONB on Postgres and JSON elsewhere."""
    type_annotation_map = {JsonPayload: JSON_COMPATIBLE}
