"""
securetransfer - Async file transfer for XMPP chat clients.

Uploads attachments through HTTP upload slots (optionally AES-GCM
encrypted end-to-end) and downloads the links found in incoming messages.

Usage:
    >>> from securetransfer import FileTransferManager, MemoryBlobStore, MemoryMessageStore
    >>>
    >>> async with FileTransferManager(discovery, iq, MemoryBlobStore(), MemoryMessageStore()) as manager:
    ...     await manager.refresh_capabilities()
    ...     message = await manager.send_file("photo.jpg", "bob@example.com", should_encrypt=True)
"""
import logging

from .manager import FileTransferManager

# Configuration
from .core.config import (
    TransferConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
)

# Errors
from .core.exceptions import (
    TransferErrorKind,
    FileTransferError,
    NoServersError,
    ServerError,
    NoSlotError,
    ExceedsMaxSizeError,
    UrlFormattingError,
    TransferFileNotFoundError,
    KeyGenerationError,
    CryptoError,
    UnknownTransferError,
)

# Pipelines
from .core.capabilities import CapabilityRegistry, CapabilityRecord, Service
from .core.upload import TransferRequest, UploadPipeline, UploadResult, UploadSlot
from .core.download import DownloadPipeline, DownloadResult

# Storage
from .core.storage import (
    MediaItem,
    ChatMessage,
    DownloadMessage,
    MemoryBlobStore,
    MemoryMessageStore,
    DirectoryBlobStore,
)

__version__ = '1.0.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for securetransfer modules.

    Args:
        level: Logging level (default: logging.INFO)
    """
    loggers = [
        'securetransfer',
        'securetransfer.manager',
        'securetransfer.capabilities',
        'securetransfer.capabilities.parser',
        'securetransfer.capabilities.events',
        'securetransfer.upload.coordinator',
        'securetransfer.upload.slot',
        'securetransfer.upload.source',
        'securetransfer.download.coordinator',
        'securetransfer.http',
        'securetransfer.storage.directory',
        'securetransfer.scheduler',
        'securetransfer.events',
    ]

    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


__all__ = [
    'FileTransferManager',
    'TransferConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'TransferErrorKind',
    'FileTransferError',
    'NoServersError',
    'ServerError',
    'NoSlotError',
    'ExceedsMaxSizeError',
    'UrlFormattingError',
    'TransferFileNotFoundError',
    'KeyGenerationError',
    'CryptoError',
    'UnknownTransferError',
    'CapabilityRegistry',
    'CapabilityRecord',
    'Service',
    'TransferRequest',
    'UploadPipeline',
    'UploadResult',
    'UploadSlot',
    'DownloadPipeline',
    'DownloadResult',
    'MediaItem',
    'ChatMessage',
    'DownloadMessage',
    'MemoryBlobStore',
    'MemoryMessageStore',
    'DirectoryBlobStore',
    'setup_logging',
]
