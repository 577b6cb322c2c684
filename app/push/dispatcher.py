"""
app/push/dispatcher.py

Entrega de notificações Web Push para todas as subscriptions de um usuário.

Fluxo:
1. Carrega as subscriptions do usuário
2. Monta um único payload JSON {title, body, url}
3. Para cada subscription: JWT VAPID + (opcional) criptografia aes128gcm + POST
4. 2xx conta como enviado; 404/410 remove a subscription; o resto é logado

Uma subscription com falha nunca impede a entrega às demais.
"""

import json
import logging

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import settings
from app.errors import PushDeliveryError
from app.models.push_subscription import PushSubscription
from app.push.encryption import encrypt_payload
from app.push.vapid import VapidSigner
from app.services.subscriptions import SubscriptionStore

log = logging.getLogger(__name__)


class PushDispatcher:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        signer: VapidSigner,
        ttl: int | None = None,
        encrypt: bool | None = None,
        timeout: float = 10,
    ):
        self.session_factory = session_factory
        self.signer = signer
        self.ttl = ttl if ttl is not None else settings.push_ttl
        self.encrypt = encrypt if encrypt is not None else settings.push_encrypt
        self.timeout = timeout

    @property
    def public_key(self) -> str:
        return self.signer.public_key

    async def send(self, user_id: str, title: str, body: str, url: str = "/") -> int:
        """Envia a notificação e retorna quantas subscriptions a receberam."""
        async with self.session_factory() as session:
            subscriptions = await SubscriptionStore(session).for_user(user_id)

        if not subscriptions:
            return 0

        payload = json.dumps({"title": title, "body": body, "url": url}).encode()
        sent = 0
        gone: list[int] = []

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for sub in subscriptions:
                try:
                    await self.deliver(client, sub, payload)
                    sent += 1
                except PushDeliveryError as e:
                    if e.gone:
                        log.info(f"Removendo subscription morta {sub.id} ({e.status_code})")
                        gone.append(sub.id)
                    else:
                        log.warning(f"Push falhou para {sub.endpoint}: {e}")
                except Exception as e:
                    log.error(f"Push falhou para {sub.endpoint}: {e}", exc_info=True)

        if gone:
            async with self.session_factory() as session:
                async with session.begin():
                    await SubscriptionStore(session).delete_ids(gone)

        log.info(f"Push para {user_id}: {sent}/{len(subscriptions)} entregues")
        return sent

    def build_request(self, sub: PushSubscription, payload: bytes) -> tuple[dict, bytes]:
        headers = {
            "Authorization": self.signer.authorization(sub.endpoint),
            "TTL": str(self.ttl),
            "Content-Type": "application/octet-stream",
        }
        if self.encrypt:
            headers["Content-Encoding"] = "aes128gcm"
            payload = encrypt_payload(payload, sub.p256dh, sub.auth)
        return headers, payload

    async def deliver(
        self, client: httpx.AsyncClient, sub: PushSubscription, payload: bytes
    ) -> None:
        headers, content = self.build_request(sub, payload)
        resp = await client.post(sub.endpoint, content=content, headers=headers)
        if not resp.is_success:
            raise PushDeliveryError(resp.status_code, sub.endpoint)
