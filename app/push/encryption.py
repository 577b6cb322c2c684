"""
app/push/encryption.py

Criptografia do payload Web Push (RFC 8291, content-coding aes128gcm da RFC 8188).

1. Par de chaves efêmero P-256 do servidor + ECDH com a chave p256dh do cliente
2. HKDF(auth_secret, ecdh_secret, "WebPush: info" ‖ ua_public ‖ as_public) → IKM
3. HKDF(salt, IKM) → CEK (16 bytes) e nonce (12 bytes)
4. AES-128-GCM sobre payload ‖ 0x02 (delimitador do último registro)

Corpo enviado: salt(16) ‖ rs(4) ‖ idlen(1) ‖ as_public(65) ‖ ciphertext
"""

import os
import struct

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from app.push.vapid import b64url_decode

RECORD_SIZE = 4096
# salt(16) + rs(4) + idlen(1) + as_public(65)
HEADER_SIZE = 16 + 4 + 1 + 65
# o corpo inteiro (cabeçalho + registro) cabe nos 4096 bytes aceitos pelos push services
MAX_PAYLOAD = RECORD_SIZE - HEADER_SIZE - 16 - 1

_KEY_INFO = b"WebPush: info\x00"
_CEK_INFO = b"Content-Encoding: aes128gcm\x00"
_NONCE_INFO = b"Content-Encoding: nonce\x00"


def _hkdf(salt: bytes, ikm: bytes, info: bytes, length: int) -> bytes:
    return HKDF(algorithm=hashes.SHA256(), length=length, salt=salt, info=info).derive(ikm)


def _public_bytes(key: ec.EllipticCurvePrivateKey) -> bytes:
    return key.public_key().public_bytes(
        serialization.Encoding.X962,
        serialization.PublicFormat.UncompressedPoint,
    )


def encrypt_payload(
    payload: bytes,
    p256dh: str,
    auth: str,
    salt: bytes | None = None,
    server_key: ec.EllipticCurvePrivateKey | None = None,
) -> bytes:
    if len(payload) > MAX_PAYLOAD:
        raise ValueError(f"Push payload too large ({len(payload)} > {MAX_PAYLOAD} bytes)")

    ua_public = b64url_decode(p256dh)
    auth_secret = b64url_decode(auth)
    ua_key = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256R1(), ua_public)

    server_key = server_key or ec.generate_private_key(ec.SECP256R1())
    as_public = _public_bytes(server_key)
    salt = salt or os.urandom(16)

    ecdh_secret = server_key.exchange(ec.ECDH(), ua_key)
    ikm = _hkdf(auth_secret, ecdh_secret, _KEY_INFO + ua_public + as_public, 32)
    cek = _hkdf(salt, ikm, _CEK_INFO, 16)
    nonce = _hkdf(salt, ikm, _NONCE_INFO, 12)

    ciphertext = AESGCM(cek).encrypt(nonce, payload + b"\x02", None)
    header = salt + struct.pack("!IB", RECORD_SIZE, len(as_public)) + as_public
    return header + ciphertext
