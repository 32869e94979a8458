"""Crypto module: per-transfer envelopes and AES-GCM payload encryption."""
from .envelope import (
    EncryptionEnvelope,
    generate_envelope,
    KEY_SIZE,
    IV_SIZE,
    TAG_SIZE,
)
from .aes_gcm import AESGCMService

_aes_gcm = AESGCMService()


def encrypt(plaintext: bytes, key: bytes, iv: bytes) -> bytes:
    """Encrypts a payload to ``ciphertext || tag``."""
    return _aes_gcm.encrypt(plaintext, key, iv)


def decrypt(framed: bytes, key: bytes, iv: bytes) -> bytes:
    """Decrypts a ``ciphertext || tag`` payload."""
    return _aes_gcm.decrypt(framed, key, iv)


def generate() -> EncryptionEnvelope:
    """Generates a fresh envelope."""
    return generate_envelope()


__all__ = [
    'EncryptionEnvelope',
    'AESGCMService',
    'generate_envelope',
    'generate',
    'encrypt',
    'decrypt',
    'KEY_SIZE',
    'IV_SIZE',
    'TAG_SIZE',
]
