"""
app/push/vapid.py

Autenticação do remetente Web Push (VAPID) sem biblioteca de push.

O JWT é assinado com ECDSA P-256 / SHA-256. A biblioteca `cryptography`
devolve a assinatura em DER (SEQUENCE de dois INTEGER); o JWS exige o formato
bruto r‖s de 64 bytes, então a conversão é feita a partir da gramática DER:
cada INTEGER perde o zero de sinal e é completado à esquerda até 32 bytes.
"""

import base64
import json
import time
from urllib.parse import urlsplit

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec

from app.config import settings
from app.errors import ConfigurationError

COORDINATE_SIZE = 32
DEFAULT_EXPIRATION = 12 * 3600

_SEQUENCE = 0x30
_INTEGER = 0x02


# ---------------------------------------------------------------------------
# base64url
# ---------------------------------------------------------------------------


def b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(value: str) -> bytes:
    """Aceita base64url ou base64 padrão, com ou sem padding."""
    value = value.strip().replace("+", "-").replace("/", "_").rstrip("=")
    return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))


# ---------------------------------------------------------------------------
# DER → r‖s
# ---------------------------------------------------------------------------


def _read_length(der: bytes, offset: int) -> tuple[int, int]:
    first = der[offset]
    offset += 1
    if first < 0x80:
        return first, offset

    # forma longa: os 7 bits baixos dizem quantos bytes de comprimento seguem
    size = first & 0x7F
    if size == 0 or size > 2 or offset + size > len(der):
        raise ValueError("Invalid DER length")
    return int.from_bytes(der[offset:offset + size], "big"), offset + size


def _read_integer(der: bytes, offset: int) -> tuple[bytes, int]:
    if der[offset] != _INTEGER:
        raise ValueError("Expected DER INTEGER")
    length, offset = _read_length(der, offset + 1)
    end = offset + length
    if length == 0 or end > len(der):
        raise ValueError("Truncated DER INTEGER")
    return der[offset:end], end


def der_to_raw_signature(der: bytes, size: int = COORDINATE_SIZE) -> bytes:
    """Converte uma assinatura ECDSA DER em r‖s de tamanho fixo (2 * size)."""
    try:
        if der[0] != _SEQUENCE:
            raise ValueError("Expected DER SEQUENCE")
        length, offset = _read_length(der, 1)
        if offset + length != len(der):
            raise ValueError("DER SEQUENCE length mismatch")

        r, offset = _read_integer(der, offset)
        s, offset = _read_integer(der, offset)
    except IndexError as e:
        raise ValueError("Truncated DER signature") from e

    if offset != len(der):
        raise ValueError("Trailing bytes after DER signature")

    raw = b""
    for value in (r, s):
        value = value.lstrip(b"\x00")
        if len(value) > size:
            raise ValueError("DER integer wider than the curve order")
        raw += value.rjust(size, b"\x00")
    return raw


# ---------------------------------------------------------------------------
# Chaves
# ---------------------------------------------------------------------------


def load_private_key(value: str) -> ec.EllipticCurvePrivateKey:
    """PEM PKCS8 ou escalar privado de 32 bytes em base64url."""
    value = (value or "").strip()
    if not value:
        raise ConfigurationError("VAPID private key is not configured")

    if value.startswith("-----BEGIN"):
        key = serialization.load_pem_private_key(value.encode(), password=None)
    else:
        scalar = int.from_bytes(b64url_decode(value), "big")
        key = ec.derive_private_key(scalar, ec.SECP256R1())

    if not isinstance(key, ec.EllipticCurvePrivateKey) or key.curve.name != "secp256r1":
        raise ConfigurationError("VAPID private key must be an ECDSA P-256 key")
    return key


def configured_private_key() -> str:
    """Chave inline (VAPID_PRIVATE_KEY) ou arquivo PEM (VAPID_PRIVATE_KEY_PATH)."""
    if settings.vapid_private_key:
        return settings.vapid_private_key
    if settings.vapid_private_key_path:
        with open(settings.vapid_private_key_path) as f:
            return f.read()
    return ""


def public_key_b64(private_key: ec.EllipticCurvePrivateKey) -> str:
    raw = private_key.public_key().public_bytes(
        serialization.Encoding.X962,
        serialization.PublicFormat.UncompressedPoint,
    )
    return b64url_encode(raw)


def audience(endpoint: str) -> str:
    parts = urlsplit(endpoint)
    return f"{parts.scheme}://{parts.netloc}"


# ---------------------------------------------------------------------------
# Assinatura
# ---------------------------------------------------------------------------


class VapidSigner:
    def __init__(
        self,
        private_key: ec.EllipticCurvePrivateKey,
        subject: str,
        public_key: str | None = None,
        expiration: int = DEFAULT_EXPIRATION,
    ):
        self.private_key = private_key
        self.subject = subject if subject.startswith(("mailto:", "https:")) else f"mailto:{subject}"
        self.public_key = public_key or public_key_b64(private_key)
        self.expiration = expiration

    @classmethod
    def from_settings(cls) -> "VapidSigner":
        return cls(
            load_private_key(configured_private_key()),
            settings.vapid_subject,
            public_key=settings.vapid_public_key or None,
        )

    def build_jwt(self, endpoint: str, now: float | None = None) -> str:
        now = time.time() if now is None else now
        header = {"typ": "JWT", "alg": "ES256"}
        claims = {
            "aud": audience(endpoint),
            "exp": int(now) + self.expiration,
            "sub": self.subject,
        }

        unsigned = ".".join(
            b64url_encode(json.dumps(part, separators=(",", ":")).encode())
            for part in (header, claims)
        )
        der = self.private_key.sign(unsigned.encode("ascii"), ec.ECDSA(hashes.SHA256()))
        return f"{unsigned}.{b64url_encode(der_to_raw_signature(der))}"

    def authorization(self, endpoint: str) -> str:
        return f"vapid t={self.build_jwt(endpoint)}, k={self.public_key}"
