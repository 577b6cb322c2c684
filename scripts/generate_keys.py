"""
Gera o par de chaves VAPID (ECDSA P-256) para o envio de Web Push.
Uso: python scripts/generate_keys.py
"""

import base64
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec


def main() -> None:
    keys_dir = Path("keys")
    keys_dir.mkdir(exist_ok=True)

    private_key = ec.generate_private_key(ec.SECP256R1())

    (keys_dir / "vapid_private.pem").write_bytes(
        private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )

    # Formato esperado pelo PushManager.subscribe() no navegador
    public_bytes = private_key.public_key().public_bytes(
        serialization.Encoding.X962,
        serialization.PublicFormat.UncompressedPoint,
    )
    public_b64 = base64.urlsafe_b64encode(public_bytes).rstrip(b"=").decode()

    print("✓ keys/vapid_private.pem gerado com sucesso.")
    print(f"TRACKER_VAPID_PUBLIC_KEY={public_b64}")


if __name__ == "__main__":
    main()
