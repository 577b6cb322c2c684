"""
app/errors.py

Hierarquia de exceções do rastreador.

- FetchError         — página não retornou 2xx ou veio vazia/curta demais
- PersistenceError   — falha ao gravar no banco, propagada ao chamador
- PushDeliveryError  — falha na entrega de um push a uma subscription
- ConfigurationError — push solicitado sem chave VAPID configurada

Ausência de contagem na extração NÃO é exceção: é um resultado válido
(follower_count=None) reportado pelo extrator.
"""


class TrackerError(Exception):
    """Base de todas as exceções da aplicação."""


class FetchError(TrackerError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PersistenceError(TrackerError):
    pass


class PushDeliveryError(TrackerError):
    # 404/410: o push service informa que o endpoint não existe mais
    GONE_STATUSES = (404, 410)

    def __init__(self, status_code: int, endpoint: str):
        super().__init__(f"Push failed: {status_code}")
        self.status_code = status_code
        self.endpoint = endpoint

    @property
    def gone(self) -> bool:
        return self.status_code in self.GONE_STATUSES


class ConfigurationError(TrackerError):
    pass
