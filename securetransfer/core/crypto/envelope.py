"""Per-transfer key material."""
from dataclasses import dataclass
from typing import Callable

from Crypto.Random import get_random_bytes

from ..exceptions import KeyGenerationError

KEY_SIZE = 32
IV_SIZE = 16
TAG_SIZE = 16


@dataclass(frozen=True)
class EncryptionEnvelope:
    """
    Key and IV used for one transfer.
    
    Attributes:
        key: 32-byte AES-256 key
        iv: 16-byte GCM nonce
    
    The envelope is never stored on its own; it travels in the shareable
    URL fragment as ``iv || key``.
    """
    key: bytes
    iv: bytes
    
    def __post_init__(self):
        if len(self.key) != KEY_SIZE:
            raise ValueError(f"Key must be {KEY_SIZE} bytes")
        if len(self.iv) != IV_SIZE:
            raise ValueError(f"IV must be {IV_SIZE} bytes")
    
    @property
    def key_iv(self) -> bytes:
        """IV followed by key, as carried in the URL fragment."""
        return self.iv + self.key
    
    @classmethod
    def from_key_iv(cls, data: bytes) -> 'EncryptionEnvelope':
        """Split 48 bytes of ``iv || key`` into an envelope."""
        if len(data) != IV_SIZE + KEY_SIZE:
            raise ValueError(f"Expected {IV_SIZE + KEY_SIZE} bytes, got {len(data)}")
        return cls(key=data[IV_SIZE:], iv=data[:IV_SIZE])
    
    def __repr__(self) -> str:
        return 'EncryptionEnvelope(key=<redacted>, iv=<redacted>)'


def generate_envelope(
    random_bytes: Callable[[int], bytes] = get_random_bytes
) -> EncryptionEnvelope:
    """
    Generate a fresh envelope from a secure random source.
    
    Args:
        random_bytes: Random source (defaults to pycryptodome's CSPRNG)
        
    Returns:
        New EncryptionEnvelope
        
    Raises:
        KeyGenerationError: If the random source fails or is short
    """
    try:
        key = random_bytes(KEY_SIZE)
        iv = random_bytes(IV_SIZE)
    except Exception as e:
        raise KeyGenerationError("Could not generate key/iv", cause=e) from e
    
    if not key or not iv or len(key) != KEY_SIZE or len(iv) != IV_SIZE:
        raise KeyGenerationError("Random source returned insufficient data")
    
    return EncryptionEnvelope(key=key, iv=iv)
