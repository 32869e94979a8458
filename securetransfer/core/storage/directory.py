"""
Directory-backed blob store.

Writes each blob to its own file using aiofiles for non-blocking I/O.
"""
import uuid
from pathlib import Path
from typing import Union

import aiofiles

from ..logging import get_logger
from .protocols import MediaBlobStore


class DirectoryBlobStore(MediaBlobStore):
    """
    Blob store writing one file per blob under a directory.
    
    Locators are file names relative to the directory.
    """
    
    def __init__(self, directory: Union[str, Path], suffix: str = '.blob'):
        """
        Initialize store.
        
        Args:
            directory: Target directory (created if missing)
            suffix: File name suffix for new blobs
        """
        self._directory = Path(directory)
        self._directory.mkdir(parents=True, exist_ok=True)
        self._suffix = suffix
        self._logger = get_logger('securetransfer.storage.directory')
    
    @property
    def directory(self) -> Path:
        return self._directory
    
    def path_for(self, locator: str) -> Path:
        """
        Resolve a locator to a file inside the directory.
        
        Raises:
            KeyError: If the locator points outside the directory
        """
        path = (self._directory / locator).resolve()
        if path.parent != self._directory.resolve():
            raise KeyError(locator)
        return path
    
    async def put(self, data: bytes) -> str:
        locator = f"{uuid.uuid4().hex}{self._suffix}"
        path = self.path_for(locator)
        async with aiofiles.open(path, 'wb') as f:
            await f.write(data)
        self._logger.debug(f"Stored {len(data)} bytes at {path}")
        return locator
    
    async def get(self, locator: str) -> bytes:
        path = self.path_for(locator)
        if not path.is_file():
            raise KeyError(locator)
        async with aiofiles.open(path, 'rb') as f:
            return await f.read()
