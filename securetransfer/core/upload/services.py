"""
Source resolution services.

Turns a TransferRequest into the payload bytes, file name and content
type to upload.
"""
import mimetypes
import uuid
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from ..config import TransferConfig
from ..exceptions import TransferFileNotFoundError
from ..logging import get_logger
from ..storage import MediaBlobStore
from .models import TransferRequest


def guess_content_type(filename: Optional[str], default: str) -> str:
    """MIME type from the file extension."""
    if filename:
        guessed, _ = mimetypes.guess_type(filename)
        if guessed:
            return guessed
    return default


class FileValidator:
    """
    Validates local files before upload.

    Responsibilities:
    - Check file existence
    - Verify file is not a directory
    """

    def validate(self, file_path: Path) -> Tuple[Path, int]:
        """
        Validate a file for upload.

        Returns:
            Tuple of (validated Path, file size in bytes)

        Raises:
            TransferFileNotFoundError: If file doesn't exist or isn't a file
        """
        path = Path(file_path)

        if not path.exists():
            raise TransferFileNotFoundError(f"File not found: {path}")

        if not path.is_file():
            raise TransferFileNotFoundError(f"Path is not a file: {path}")

        return path, path.stat().st_size


class SourceResolver:
    """
    Reads payload bytes from whichever source a request names.

    Order: raw bytes, blob store locator, filesystem path.
    """

    def __init__(
        self,
        blob_store: Optional[MediaBlobStore] = None,
        config: Optional[TransferConfig] = None
    ):
        """
        Initialize resolver.

        Args:
            blob_store: Store used for locator sources
            config: Transfer configuration (default content type)
        """
        self._blob_store = blob_store
        self._config = config or TransferConfig.default()
        self._validator = FileValidator()
        self._logger = get_logger('securetransfer.upload.source')

    async def resolve(self, request: TransferRequest) -> Tuple[bytes, str, str]:
        """
        Resolve a request to (data, filename, content_type).

        Raises:
            TransferFileNotFoundError: If no source can be read
        """
        data = await self._read(request)
        content_type = request.content_type or guess_content_type(
            request.filename, self._config.default_content_type
        )
        filename = request.filename or self._default_filename(content_type)
        self._logger.debug(f"Resolved {filename}: {len(data)} bytes, {content_type}")
        return data, filename, content_type

    async def _read(self, request: TransferRequest) -> bytes:
        if request.data is not None:
            return request.data

        if request.locator is not None:
            if self._blob_store is None:
                raise TransferFileNotFoundError(
                    f"No blob store to resolve locator {request.locator}"
                )
            try:
                return await self._blob_store.get(request.locator)
            except (KeyError, OSError) as e:
                raise TransferFileNotFoundError(
                    f"Blob not found: {request.locator}", cause=e
                ) from e

        if request.file_path is not None:
            path, _ = self._validator.validate(Path(request.file_path))
            try:
                async with aiofiles.open(path, 'rb') as f:
                    return await f.read()
            except OSError as e:
                raise TransferFileNotFoundError(f"Could not read {path}: {e}", cause=e) from e

        raise TransferFileNotFoundError("Request has no data, locator or file path")

    @staticmethod
    def _default_filename(content_type: str) -> str:
        extension = mimetypes.guess_extension(content_type) or ''
        return f"{uuid.uuid4()}{extension}"
