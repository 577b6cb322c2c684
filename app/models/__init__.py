# Registra todos os modelos no metadata: os relacionamentos Channel ↔ Snapshot
# são resolvidos por nome e exigem que as duas classes estejam carregadas.
from .channel import Channel
from .snapshot import Snapshot
from .push_subscription import PushSubscription

__all__ = [
    "Channel",
    "Snapshot",
    "PushSubscription",
]
