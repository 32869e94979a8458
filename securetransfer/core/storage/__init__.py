"""Storage: records, store protocols and bundled implementations."""
from .models import MediaItem, ChatMessage, DownloadMessage
from .protocols import MediaBlobStore, MessageStore
from .memory import MemoryBlobStore, MemoryMessageStore
from .directory import DirectoryBlobStore

__all__ = [
    'MediaItem',
    'ChatMessage',
    'DownloadMessage',
    'MediaBlobStore',
    'MessageStore',
    'MemoryBlobStore',
    'MemoryMessageStore',
    'DirectoryBlobStore',
]
