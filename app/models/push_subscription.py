"""
app/models/push_subscription.py

Subscriptions Web Push por usuário.

Criada quando o cliente aceita notificações e removida no opt-out explícito
ou quando o push service responde 404/410 (endpoint morto).
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class PushSubscription(Base):
    __tablename__ = "push_subscriptions"
    __table_args__ = (
        UniqueConstraint("user_id", "endpoint", name="uq_push_sub_user_endpoint"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)

    # URL opaca emitida pelo push service do navegador
    endpoint: Mapped[str] = mapped_column(Text)

    # Chave pública P-256 do cliente e segredo de autenticação (base64)
    p256dh: Mapped[str] = mapped_column(String(255))
    auth: Mapped[str] = mapped_column(String(255))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        insert_default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<PushSubscription user_id={self.user_id!r} endpoint={self.endpoint!r}>"
