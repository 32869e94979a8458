"""AES-GCM payload encryption with ``ciphertext || tag`` framing."""
from Crypto.Cipher import AES

from ..exceptions import CryptoError
from .envelope import TAG_SIZE


class AESGCMService:
    """
    Authenticated encryption of whole payloads.
    
    The 16-byte tag is appended to the ciphertext; receivers locate it by
    position, there is no length prefix.
    """
    
    tag_size = TAG_SIZE
    
    def encrypt(self, plaintext: bytes, key: bytes, iv: bytes) -> bytes:
        """
        Encrypt a payload.
        
        Args:
            plaintext: Data to encrypt
            key: 32-byte key
            iv: 16-byte nonce
            
        Returns:
            Ciphertext immediately followed by the authentication tag
            
        Raises:
            CryptoError: If the cipher rejects the input
        """
        try:
            cipher = AES.new(key, AES.MODE_GCM, nonce=iv, mac_len=self.tag_size)
            ciphertext, tag = cipher.encrypt_and_digest(plaintext)
        except (ValueError, TypeError) as e:
            raise CryptoError(f"Encryption failed: {e}", cause=e) from e
        return ciphertext + tag
    
    def decrypt(self, framed: bytes, key: bytes, iv: bytes) -> bytes:
        """
        Decrypt and authenticate a framed payload.
        
        Args:
            framed: Ciphertext followed by the tag
            key: 32-byte key
            iv: 16-byte nonce
            
        Returns:
            Plaintext
            
        Raises:
            CryptoError: If the payload is too short or fails authentication
        """
        if len(framed) <= self.tag_size:
            raise CryptoError(
                f"Payload of {len(framed)} bytes is too short to hold a "
                f"{self.tag_size}-byte tag"
            )
        
        ciphertext, tag = framed[:-self.tag_size], framed[-self.tag_size:]
        try:
            cipher = AES.new(key, AES.MODE_GCM, nonce=iv, mac_len=self.tag_size)
            return cipher.decrypt_and_verify(ciphertext, tag)
        except (ValueError, TypeError) as e:
            raise CryptoError(f"Decryption failed: {e}", cause=e) from e
