"""Data models for download module."""
from dataclasses import dataclass
from typing import Optional

from ..storage import MediaItem


@dataclass(frozen=True)
class DownloadResult:
    """
    Result of a stored download.
    
    Attributes:
        url: Link as received
        media_item: Stored incoming media item
        size: Plaintext size in bytes
        decrypted: True if the payload was encrypted
        message_updated: False if the owning message was gone at completion
    """
    url: str
    media_item: MediaItem
    size: int
    decrypted: bool
    message_updated: bool = True


@dataclass(frozen=True)
class FetchedPayload:
    """
    Plaintext bytes of a fetched link.
    
    Attributes:
        data: Plaintext (decrypted when the link carried a key)
        content_type: MIME type reported by the server
        decrypted: True if the payload was encrypted
    """
    data: bytes
    content_type: Optional[str] = None
    decrypted: bool = False
