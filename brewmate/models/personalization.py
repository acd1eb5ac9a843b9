"""Tables backing the SQL storage adapter.

Records hold the JSON-mode dump of the schema objects in ``payload``; the
scalar columns exist for filtering and ordering only.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from brewmate.db.base_class import Base, JsonPayload


class TasteProfileRecord(Base):
    """Serialized taste profile, one row per user."""
    __tablename__ = "user_taste_profiles"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[JsonPayload] = mapped_column(default=dict)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class BrewHistoryRecord(Base):
    """Append-only diary entry."""
    __tablename__ = "brew_history_entries"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    recipe_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    payload: Mapped[JsonPayload] = mapped_column(default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)


class RecipeProfileRecord(Base):
    """Catalog recipe taste description."""
    __tablename__ = "recipe_profiles"

    recipe_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    brew_method: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    payload: Mapped[JsonPayload] = mapped_column(default=dict)
