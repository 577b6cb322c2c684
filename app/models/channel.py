"""
app/models/channel.py

Modelo ORM dos canais rastreados.

Cada canal pertence (opcionalmente) a um usuário e é único por (user_id, url).
A plataforma é derivada da URL pelo detector, nunca editada diretamente.
Os snapshots pertencem ao canal e são removidos junto com ele.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Channel(Base):
    __tablename__ = "channels"
    __table_args__ = (
        UniqueConstraint("user_id", "url", name="uq_channels_user_url"),
    )

    # Identificador opaco e estável exposto na API como channel_id
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    # Dono do canal, destino das notificações push. Canais sem dono
    # continuam sendo rastreados, mas não notificam ninguém.
    user_id: Mapped[str | None] = mapped_column(String(64), index=True)

    # URL canônica absoluta (já normalizada pelo fetcher)
    url: Mapped[str] = mapped_column(String(2048))

    # Mutável: a última extração com nome concreto vence
    display_name: Mapped[str] = mapped_column(String(255), default="Unknown Channel")

    platform: Mapped[str] = mapped_column(String(20), default="other")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    follower_goal: Mapped[int | None] = mapped_column(Integer)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        insert_default=lambda: datetime.now(timezone.utc),
    )

    snapshots = relationship(
        "Snapshot",
        back_populates="channel",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Channel id={self.id!r} url={self.url!r}>"
