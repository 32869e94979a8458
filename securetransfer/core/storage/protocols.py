"""
Storage protocols.

Persistence of messages and media blobs is provided by the host
application; these are the interfaces the pipelines depend on.
"""
from typing import Any, List, Optional, Protocol, Type, TypeVar, runtime_checkable

T = TypeVar('T')


@runtime_checkable
class MediaBlobStore(Protocol):
    """Storage for attachment bytes (typically encrypted at rest)."""
    
    async def put(self, data: bytes) -> str:
        """
        Store bytes.
        
        Args:
            data: Plaintext bytes
            
        Returns:
            Locator to read them back
        """
        ...
    
    async def get(self, locator: str) -> bytes:
        """
        Read bytes back.
        
        Raises:
            KeyError: If nothing is stored under the locator
        """
        ...


@runtime_checkable
class MessageStore(Protocol):
    """Store for message and media records."""
    
    async def save(self, record: Any) -> None:
        """Insert or replace a record (keyed by type and unique_id)."""
        ...
    
    async def read(self, record_type: Type[T], unique_id: str) -> Optional[T]:
        """Fetch a record, None if missing."""
        ...
    
    async def update(self, record_type: Type[T], unique_id: str, **changes: Any) -> Optional[T]:
        """Apply field changes to a record, None if missing."""
        ...
    
    async def query(self, record_type: Type[T], **filters: Any) -> List[T]:
        """Records of a type whose fields equal the filters."""
        ...
