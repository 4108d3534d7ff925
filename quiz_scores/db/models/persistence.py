from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from quiz_scores.db.models.base import Base, TimestampMixin


class LegacyPersistenceEntry(Base, TimestampMixin):
    """Key/value blob carried over from the pre-aggregation score storage."""

    __tablename__ = "legacy_persistence"

    id: Mapped[int] = mapped_column(primary_key=True)
    key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<LegacyPersistenceEntry {self.key}>"
