"""
Records exchanged with the message/media store.

Uses dataclasses for simple, typed records; the store decides how they
are persisted.
"""
import uuid
from dataclasses import dataclass, field
from typing import Optional


def new_unique_id() -> str:
    return str(uuid.uuid4())


@dataclass
class MediaItem:
    """
    An attachment known to the store.
    
    Attributes:
        filename: Display file name
        mime_type: MIME type of the plaintext bytes
        is_incoming: True for downloaded media
        locator: Blob store locator of the plaintext bytes
        file_path: Local file the bytes can be read from (outgoing only)
        transfer_progress: 0.0 to 1.0
    """
    filename: str
    mime_type: Optional[str] = None
    is_incoming: bool = False
    locator: Optional[str] = None
    file_path: Optional[str] = None
    transfer_progress: float = 0.0
    unique_id: str = field(default_factory=new_unique_id)
    
    @classmethod
    def incoming(cls, filename: str, mime_type: Optional[str] = None) -> 'MediaItem':
        """Create a media item for received bytes."""
        return cls(filename=filename, mime_type=mime_type, is_incoming=True)


@dataclass
class ChatMessage:
    """
    A chat message that may carry an attachment.
    
    Attributes:
        thread_id: Conversation (buddy) identifier
        text: Message body; the shareable URL once an upload completes
        media_item_id: Attached media item
        error: Last transfer error, if any
        queued: True once handed to the send queue
    """
    thread_id: str
    text: Optional[str] = None
    media_item_id: Optional[str] = None
    error: Optional[str] = None
    queued: bool = False
    is_incoming: bool = False
    unique_id: str = field(default_factory=new_unique_id)


@dataclass
class DownloadMessage:
    """
    One downloadable link found in an incoming message.
    
    Attributes:
        parent_message_id: Message the link was found in
        thread_id: Conversation (buddy) identifier
        url: Link exactly as received, fragment included
        media_item_id: Set once the download is stored
    """
    parent_message_id: str
    thread_id: str
    url: str
    media_item_id: Optional[str] = None
    unique_id: str = field(default_factory=new_unique_id)
    
    @classmethod
    def for_message(cls, message: ChatMessage, url: str) -> 'DownloadMessage':
        return cls(parent_message_id=message.unique_id, thread_id=message.thread_id, url=url)
