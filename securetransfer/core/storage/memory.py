"""
In-memory storage implementations.

Non-persistent stores for unit tests, CLI usage and embedding.
"""
import dataclasses
import uuid
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from .protocols import MediaBlobStore, MessageStore

T = TypeVar('T')


class MemoryBlobStore(MediaBlobStore):
    """
    Blob store keeping bytes in a dict.
    
    Example:
        >>> store = MemoryBlobStore()
        >>> locator = await store.put(b"data")
        >>> await store.get(locator)
        b'data'
    """
    
    def __init__(self):
        self._blobs: Dict[str, bytes] = {}
    
    async def put(self, data: bytes) -> str:
        locator = uuid.uuid4().hex
        self._blobs[locator] = bytes(data)
        return locator
    
    async def get(self, locator: str) -> bytes:
        return self._blobs[locator]
    
    def __len__(self) -> int:
        return len(self._blobs)
    
    def __contains__(self, locator: str) -> bool:
        return locator in self._blobs


class MemoryMessageStore(MessageStore):
    """
    Message store keeping dataclass records in a dict.
    
    Records are copied on the way in and out so callers never share
    mutable state with the store.
    """
    
    def __init__(self):
        self._records: Dict[Tuple[str, str], Any] = {}
    
    @staticmethod
    def _key(record_type: type, unique_id: str) -> Tuple[str, str]:
        return record_type.__name__, unique_id
    
    async def save(self, record: Any) -> None:
        self._records[self._key(type(record), record.unique_id)] = dataclasses.replace(record)
    
    async def read(self, record_type: Type[T], unique_id: str) -> Optional[T]:
        record = self._records.get(self._key(record_type, unique_id))
        return dataclasses.replace(record) if record is not None else None
    
    async def update(self, record_type: Type[T], unique_id: str, **changes: Any) -> Optional[T]:
        key = self._key(record_type, unique_id)
        record = self._records.get(key)
        if record is None:
            return None
        updated = dataclasses.replace(record, **changes)
        self._records[key] = updated
        return dataclasses.replace(updated)
    
    async def query(self, record_type: Type[T], **filters: Any) -> List[T]:
        return [
            dataclasses.replace(record)
            for (type_name, _), record in self._records.items()
            if type_name == record_type.__name__
            and all(getattr(record, name) == value for name, value in filters.items())
        ]
    
    async def delete(self, record_type: type, unique_id: str) -> None:
        self._records.pop(self._key(record_type, unique_id), None)
