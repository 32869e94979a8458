"""
Upload module.

Negotiates a slot with an upload service and transfers (optionally
encrypted) payloads to it.
"""
from .coordinator import UploadPipeline
from .models import TransferRequest, UploadJob, UploadResult, UploadSlot, UploadState
from .protocols import IqTransport, PayloadUploader, SlotRequester
from .services import FileValidator, SourceResolver
from .slot import SlotNegotiator, build_slot_request, parse_slot

__all__ = [
    # Main classes
    'UploadPipeline',
    'SlotNegotiator',
    'SourceResolver',
    'FileValidator',
    
    # Models
    'TransferRequest',
    'UploadJob',
    'UploadResult',
    'UploadSlot',
    'UploadState',
    
    # Protocols
    'IqTransport',
    'PayloadUploader',
    'SlotRequester',
    
    # Helpers
    'build_slot_request',
    'parse_slot',
]
