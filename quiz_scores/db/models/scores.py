from sqlalchemy import BigInteger, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from quiz_scores.db.models.base import Base, TimestampMixin


class UserGlobalTotalScore(Base, TimestampMixin):
    __tablename__ = "user_global_total_scores"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    score: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    last_known_username: Mapped[str | None] = mapped_column(String(255))

    __table_args__ = (
        Index("idx_global_total_user", "user_id", unique=True),
        Index("idx_global_total_score", "score"),
    )

    def __repr__(self) -> str:
        return f"<UserGlobalTotalScore user_id={self.user_id} score={self.score}>"


class UserGroupTotalScore(Base, TimestampMixin):
    __tablename__ = "user_group_total_scores"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    group_id: Mapped[str] = mapped_column(String(64), nullable=False)
    score: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    last_known_username: Mapped[str | None] = mapped_column(String(255))

    __table_args__ = (
        Index("idx_group_total_user_group", "user_id", "group_id", unique=True),
        Index("idx_group_total_group_score", "group_id", "score"),
    )

    def __repr__(self) -> str:
        return (
            f"<UserGroupTotalScore user_id={self.user_id} "
            f"group_id={self.group_id} score={self.score}>"
        )


class UserGlobalDeckScore(Base, TimestampMixin):
    __tablename__ = "user_global_deck_scores"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    deck_unique_id: Mapped[str] = mapped_column(String(255), nullable=False)
    score: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    last_known_username: Mapped[str | None] = mapped_column(String(255))

    __table_args__ = (
        Index("idx_global_deck_user_deck", "user_id", "deck_unique_id", unique=True),
        Index("idx_global_deck_deck", "deck_unique_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<UserGlobalDeckScore user_id={self.user_id} "
            f"deck={self.deck_unique_id} score={self.score}>"
        )


class UserGroupDeckScore(Base, TimestampMixin):
    __tablename__ = "user_group_deck_scores"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    group_id: Mapped[str] = mapped_column(String(64), nullable=False)
    deck_unique_id: Mapped[str] = mapped_column(String(255), nullable=False)
    score: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    last_known_username: Mapped[str | None] = mapped_column(String(255))

    __table_args__ = (
        Index(
            "idx_group_deck_user_group_deck",
            "user_id",
            "group_id",
            "deck_unique_id",
            unique=True,
        ),
        Index("idx_group_deck_group_deck", "group_id", "deck_unique_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<UserGroupDeckScore user_id={self.user_id} group_id={self.group_id} "
            f"deck={self.deck_unique_id} score={self.score}>"
        )


AGGREGATE_SCORE_MODELS = (
    UserGlobalTotalScore,
    UserGroupTotalScore,
    UserGlobalDeckScore,
    UserGroupDeckScore,
)
