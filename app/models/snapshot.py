"""
app/models/snapshot.py

Modelo ORM dos snapshots de seguidores: série temporal append-only.

Um snapshot é imutável depois de gravado. O "mais recente" de um canal é o de
maior created_at; empates são desfeitos pelo id (ordem de inserção).
Um snapshot com erro nunca carrega follower_count.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Snapshot(Base):
    __tablename__ = "follower_snapshots"
    __table_args__ = (
        CheckConstraint(
            "follower_count IS NULL OR error IS NULL",
            name="ck_snapshots_count_xor_error",
        ),
        CheckConstraint(
            "follower_count IS NULL OR follower_count >= 0",
            name="ck_snapshots_count_non_negative",
        ),
        Index("ix_snapshots_channel_created", "channel_id", "created_at"),
    )

    # Autoincremento: desempate estável entre snapshots com o mesmo created_at
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    channel_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("channels.id", ondelete="CASCADE"),
    )

    follower_count: Mapped[int | None] = mapped_column(Integer)

    # Texto de diagnóstico, nunca é parseado novamente
    raw_text: Mapped[str] = mapped_column(Text, default="")

    error: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        insert_default=lambda: datetime.now(timezone.utc),
    )

    channel = relationship("Channel", back_populates="snapshots")

    def __repr__(self) -> str:
        return (
            f"<Snapshot id={self.id!r} channel_id={self.channel_id!r} "
            f"follower_count={self.follower_count!r}>"
        )
