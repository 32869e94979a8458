"""
File transfer manager.

High-level entry point wiring capability discovery, the upload and
download pipelines and the host application's stores.
"""
import asyncio
from pathlib import Path
from typing import Callable, List, Optional, Union

import aiofiles

from .core.capabilities import CapabilityRegistry, DiscoveryTransport, Service
from .core.config import TransferConfig
from .core.download import DownloadPipeline, DownloadResult
from .core.exceptions import FileTransferError
from .core.http import HttpTransport
from .core.logging import get_logger
from .core.scheduler import TransferScheduler
from .core.storage import (
    ChatMessage,
    DownloadMessage,
    MediaBlobStore,
    MediaItem,
    MessageStore,
)
from .core.upload import (
    IqTransport,
    SlotNegotiator,
    TransferRequest,
    UploadPipeline,
    UploadResult,
)
from .core.upload.services import guess_content_type
from .core.urls import downloadable_urls

logger = get_logger('securetransfer.manager')

UploadCompletion = Callable[[Optional[str], Optional[BaseException]], None]
DownloadCompletion = Callable[[Optional[DownloadResult]], None]


class FileTransferManager:
    """
    Sends and receives chat attachments.

    Example:
        >>> async with FileTransferManager(discovery, iq, blobs, messages) as manager:
        ...     await manager.refresh_capabilities()
        ...     message = await manager.send_file("photo.jpg", "alice@example.com", should_encrypt=True)
        ...     print(message.text)  # aesgcm://...#<key>
    """

    def __init__(
        self,
        discovery: DiscoveryTransport,
        iq_transport: IqTransport,
        blob_store: MediaBlobStore,
        message_store: MessageStore,
        config: Optional[TransferConfig] = None,
        http: Optional[HttpTransport] = None,
        callback_loop: Optional[asyncio.AbstractEventLoop] = None
    ):
        """
        Initialize manager.

        Args:
            discovery: Capability discovery transport
            iq_transport: IQ transport used for slot requests
            blob_store: Media blob store
            message_store: Message/media record store
            config: Transfer configuration
            http: Shared HTTP transport (created and owned if omitted)
            callback_loop: Loop completion callbacks are delivered on
        """
        self._config = config or TransferConfig.default()
        self._owns_http = http is None
        self._http = http or HttpTransport(self._config)
        self._blob_store = blob_store
        self._message_store = message_store

        self.registry = CapabilityRegistry(discovery, self._config)
        self._uploads = UploadPipeline(
            registry=self.registry,
            slot_requester=SlotNegotiator(iq_transport, self._config),
            http=self._http,
            blob_store=blob_store,
            config=self._config,
        )
        self._downloads = DownloadPipeline(
            blob_store=blob_store,
            message_store=message_store,
            http=self._http,
            config=self._config,
        )
        self._scheduler = TransferScheduler(callback_loop)

    async def __aenter__(self) -> 'FileTransferManager':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        """Wait for running transfers, then release the HTTP transport."""
        await self._scheduler.drain()
        if self._owns_http:
            await self._http.close()

    # =========================================================================
    # Capabilities
    # =========================================================================

    @property
    def can_upload_files(self) -> bool:
        return self.registry.can_upload

    async def refresh_capabilities(self) -> List[Service]:
        """Rediscover upload services."""
        return list(await self.registry.refresh())

    # =========================================================================
    # Upload
    # =========================================================================

    async def upload(self, request: TransferRequest) -> UploadResult:
        """Upload and return the result; raises FileTransferError on failure."""
        return await self._uploads.upload(request)

    def submit_upload(
        self,
        request: TransferRequest,
        completion: UploadCompletion
    ) -> asyncio.Task:
        """
        Start an upload and report it through `completion(url, error)`.

        The callback fires exactly once, on the callback loop.
        """
        def on_done(result: Optional[UploadResult], error: Optional[BaseException]) -> None:
            completion(result.url if result else None, error)

        return self._scheduler.submit(
            self._uploads.upload(request), on_done, name=f"upload:{request.filename}"
        )

    async def send(
        self,
        media_item: MediaItem,
        message: ChatMessage,
        should_encrypt: bool,
        prefetched_data: Optional[bytes] = None
    ) -> UploadResult:
        """
        Upload a message's attachment and queue the message for sending.

        On success the message text becomes the shareable URL and the
        message is marked queued. On failure the error is recorded on the
        message and re-raised.

        Args:
            media_item: Attachment to upload
            message: Outgoing message carrying it
            should_encrypt: Encrypt the payload end-to-end
            prefetched_data: Attachment bytes if already in memory
        """
        if prefetched_data is not None:
            request = TransferRequest(data=prefetched_data)
        elif media_item.locator is not None:
            request = TransferRequest(locator=media_item.locator)
        elif media_item.file_path is not None:
            request = TransferRequest(file_path=media_item.file_path)
        else:
            request = TransferRequest()
        request.filename = media_item.filename
        request.content_type = media_item.mime_type
        request.should_encrypt = should_encrypt

        try:
            result = await self._uploads.upload(request)
        except FileTransferError as e:
            logger.error(f"Error uploading: {e}")
            await self._message_store.update(ChatMessage, message.unique_id, error=str(e))
            raise

        await self._message_store.update(MediaItem, media_item.unique_id, transfer_progress=1.0)
        await self._message_store.update(
            ChatMessage, message.unique_id, text=result.url, error=None, queued=True
        )
        return result

    async def send_file(
        self,
        file_path: Union[str, Path],
        thread_id: str,
        should_encrypt: bool
    ) -> ChatMessage:
        """
        Create an outgoing message for a local file and send it.

        The file is copied into the blob store first.

        Returns:
            The message as stored after the upload
        """
        path = Path(file_path)
        media_item = MediaItem(
            filename=path.name,
            mime_type=guess_content_type(path.name, self._config.default_content_type),
            file_path=str(path),
        )
        message = ChatMessage(thread_id=thread_id, media_item_id=media_item.unique_id)
        await self._message_store.save(message)
        await self._message_store.save(media_item)

        data = None
        try:
            async with aiofiles.open(path, 'rb') as f:
                data = await f.read()
            media_item.locator = await self._blob_store.put(data)
            await self._message_store.update(MediaItem, media_item.unique_id, locator=media_item.locator)
        except OSError as e:
            logger.error(f"Error copying {path} to media storage: {e}")
            await self._message_store.update(ChatMessage, message.unique_id, error=str(e))

        try:
            await self.send(media_item, message, should_encrypt, prefetched_data=data)
        except FileTransferError:
            pass  # recorded on the message

        return await self._message_store.read(ChatMessage, message.unique_id)

    # =========================================================================
    # Download
    # =========================================================================

    async def create_and_download_items_if_needed(
        self,
        message: ChatMessage
    ) -> List[Optional[DownloadResult]]:
        """
        Create download records for the links in a message and fetch them.

        The message should already be saved. Existing download records for
        the message are reused.
        """
        urls = downloadable_urls(message.text)
        if message.media_item_id is not None or not urls:
            logger.debug(f"Download of message not needed {message.unique_id}")
            return []

        downloads = await self._message_store.query(
            DownloadMessage, parent_message_id=message.unique_id
        )
        if not downloads:
            downloads = [DownloadMessage.for_message(message, url) for url in urls]
            for download in downloads:
                await self._message_store.save(download)

        return list(await asyncio.gather(
            *(self.download_media_if_needed(download) for download in downloads)
        ))

    async def download_media_if_needed(self, download: DownloadMessage) -> Optional[DownloadResult]:
        """Download the media of one download record."""
        return await self._downloads.download(download)

    def submit_download(
        self,
        download: DownloadMessage,
        completion: Optional[DownloadCompletion] = None
    ) -> asyncio.Task:
        """Start a download; `completion(result)` fires once with None on failure."""
        def on_done(result: Optional[DownloadResult], error: Optional[BaseException]) -> None:
            if error is not None:
                logger.error(f"Download task failed: {error}")
            if completion is not None:
                completion(result)

        return self._scheduler.submit(
            self._downloads.download(download), on_done, name=f"download:{download.unique_id}"
        )
