from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from quiz_scores.db.models.base import Base, TimestampMixin


class CustomDeck(Base, TimestampMixin):
    __tablename__ = "custom_decks"

    id: Mapped[int] = mapped_column(primary_key=True)
    short_name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    unique_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(255))
    owner_id: Mapped[str | None] = mapped_column(String(64))

    def __repr__(self) -> str:
        return f"<CustomDeck {self.short_name} ({self.unique_id})>"
