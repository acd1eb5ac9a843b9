"""Import all models here so metadata is complete before create_all."""

from brewmate.db.base_class import Base
from brewmate.models import personalization  # noqa: F401

__all__ = ["Base"]
