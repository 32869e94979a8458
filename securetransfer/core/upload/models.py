"""
Data models for upload module.

Uses dataclasses for immutable, type-safe data structures.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Union

from ..capabilities import Service
from ..crypto import EncryptionEnvelope


@dataclass(frozen=True)
class UploadSlot:
    """
    One-time upload location issued by a service.
    
    Attributes:
        put_url: Where the bytes are PUT
        get_url: Public read location to share
        put_headers: Headers the service requires on the PUT
    """
    put_url: str
    get_url: str
    put_headers: Dict[str, str] = field(default_factory=dict)


@dataclass
class TransferRequest:
    """
    What to upload.
    
    Exactly one byte source must be given: ``data``, ``file_path`` or
    ``locator`` (a media blob store locator).
    
    Attributes:
        data: Raw bytes
        file_path: Local file to read
        locator: Blob store locator
        filename: Name announced to the service
        content_type: MIME type announced to the service
        should_encrypt: Encrypt with a fresh envelope before sending
    
    Example:
        >>> TransferRequest(data=b"...", filename="photo.jpg", should_encrypt=True)
    """
    data: Optional[bytes] = None
    file_path: Optional[Union[str, Path]] = None
    locator: Optional[str] = None
    filename: Optional[str] = None
    content_type: Optional[str] = None
    should_encrypt: bool = False
    
    def __post_init__(self):
        """Validate and normalize request."""
        sources = [s for s in (self.data, self.file_path, self.locator) if s is not None]
        if len(sources) > 1:
            raise ValueError("TransferRequest takes exactly one of data, file_path or locator")
        
        if isinstance(self.file_path, str):
            self.file_path = Path(self.file_path)
        
        if self.filename is None and self.file_path is not None:
            self.filename = self.file_path.name
    
    @property
    def has_source(self) -> bool:
        return any(s is not None for s in (self.data, self.file_path, self.locator))


class UploadState(str, Enum):
    """Steps of one upload, in order."""
    
    IDLE = 'idle'
    SOURCE_RESOLVED = 'source_resolved'
    SIZE_CHECKED = 'size_checked'
    ENCRYPTED = 'encrypted'
    PASSTHROUGH = 'passthrough'
    SLOT_REQUESTED = 'slot_requested'
    TRANSFERRED = 'transferred'
    FINALIZED = 'finalized'
    FAILED = 'failed'


@dataclass(frozen=True)
class UploadResult:
    """
    Result of a successful upload.
    
    Attributes:
        url: Final shareable URL (aesgcm with key fragment when encrypted)
        slot: Slot the bytes were written to
        transmitted_size: Bytes actually sent
        service: Service that issued the slot
        envelope: Key material, when encrypted
    """
    url: str
    slot: UploadSlot
    transmitted_size: int
    service: Optional[Service] = None
    envelope: Optional[EncryptionEnvelope] = None
    
    @property
    def encrypted(self) -> bool:
        return self.envelope is not None


@dataclass
class UploadJob:
    """
    Per-request state of the upload state machine.
    
    Attributes:
        request: Originating request
        state: Current step
        data: Payload after source resolution (and encryption)
        filename: Name announced to the service
        content_type: MIME type announced to the service
        service: Selected service
        envelope: Key material, when encrypted
        slot: Negotiated slot
        url: Final URL
        error: Failure, when state is FAILED
    """
    request: TransferRequest
    state: UploadState = UploadState.IDLE
    data: Optional[bytes] = None
    filename: Optional[str] = None
    content_type: Optional[str] = None
    service: Optional[Service] = None
    envelope: Optional[EncryptionEnvelope] = None
    slot: Optional[UploadSlot] = None
    url: Optional[str] = None
    error: Optional[Exception] = None
