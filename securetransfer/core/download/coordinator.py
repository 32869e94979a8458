"""
Download coordinator.

Fetches shared links, decrypts ``aesgcm`` payloads and hands the
plaintext to the media stores.
"""
import asyncio
from dataclasses import replace
from typing import Dict, FrozenSet, Optional

import aiohttp

from ..config import TransferConfig
from ..crypto import AESGCMService
from ..exceptions import CryptoError
from ..http import HttpTransport
from ..logging import get_logger
from ..storage import DownloadMessage, MediaBlobStore, MediaItem, MessageStore
from ..urls import dedupe_key, extract_key, filename_from_url, normalize_for_fetch
from .models import DownloadResult, FetchedPayload
from .protocols import PayloadFetcher

logger = get_logger('securetransfer.download.coordinator')


class DownloadPipeline:
    """
    Coordinates downloads of incoming attachments.

    Failures here are logged and end the download quietly: ``download``
    returns None and nothing is stored.

    Concurrent requests for the same resource share one fetch. The
    resource identity is the fetchable URL without its fragment, so two
    encrypted links to the same location count as duplicates.
    """

    def __init__(
        self,
        blob_store: MediaBlobStore,
        message_store: MessageStore,
        http: Optional[PayloadFetcher] = None,
        config: Optional[TransferConfig] = None
    ):
        """
        Initialize download pipeline.

        Args:
            blob_store: Store receiving the plaintext bytes
            message_store: Store receiving the media item and message update
            http: Transport for the GET (an owned HttpTransport by default)
            config: Transfer configuration
        """
        self._config = config or TransferConfig.default()
        self._blob_store = blob_store
        self._message_store = message_store
        self._owns_http = http is None
        self._http = http or HttpTransport(self._config)
        self._cipher = AESGCMService()
        self._in_flight: Dict[str, asyncio.Task] = {}

    @property
    def in_flight(self) -> FrozenSet[str]:
        """Resource identities currently being fetched."""
        return frozenset(self._in_flight)

    def is_downloading(self, url: str) -> bool:
        """True if a fetch for the resource behind `url` is running."""
        return dedupe_key(url) in self._in_flight

    async def close(self) -> None:
        """Release the HTTP transport if this pipeline created it."""
        if self._owns_http and isinstance(self._http, HttpTransport):
            await self._http.close()

    async def download(self, download: DownloadMessage) -> Optional[DownloadResult]:
        """
        Download, decrypt and store the media for one link.

        Args:
            download: Download record holding the link as received

        Returns:
            DownloadResult, or None if skipped or failed
        """
        if download.media_item_id is not None:
            logger.warning(f"Already downloaded media for {download.unique_id}")
            return None

        try:
            key = dedupe_key(download.url)
        except ValueError as e:
            logger.error(f"Invalid download URL {download.url!r}: {e}")
            return None

        task = self._in_flight.get(key)
        if task is not None:
            logger.warning(f"Already have outstanding download for {normalize_for_fetch(download.url)}")
            return await self._join(task, download)

        task = asyncio.ensure_future(self._run(download))
        self._in_flight[key] = task

        def release(finished: asyncio.Task) -> None:
            if self._in_flight.get(key) is finished:
                del self._in_flight[key]

        task.add_done_callback(release)
        return await asyncio.shield(task)

    async def _join(self, task: asyncio.Task, download: DownloadMessage) -> Optional[DownloadResult]:
        """Wait for an in-flight download and link its media to this record too."""
        shared = await asyncio.shield(task)
        if shared is None:
            return None
        updated = await self._link(download, shared.media_item)
        if updated is None:
            return None
        return replace(shared, url=download.url, message_updated=updated)

    async def fetch(self, url: str) -> Optional[FetchedPayload]:
        """
        Fetch a link and decrypt it when it carries a key.

        Args:
            url: Link as received, fragment included

        Returns:
            FetchedPayload, or None if the fetch or decryption failed
        """
        try:
            fetch_url = normalize_for_fetch(url)
        except ValueError as e:
            logger.error(f"Invalid download URL {url!r}: {e}")
            return None
        logger.debug(f"Downloading media item at URL: {fetch_url}")

        try:
            response = await self._http.get(fetch_url)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.error(f"Error downloading file {fetch_url}: {e}")
            return None

        if not response.ok:
            logger.error(f"Download of {fetch_url} returned HTTP {response.status}")
            return None

        data = response.body
        key_iv = extract_key(url)
        if key_iv is None:
            return FetchedPayload(data=data, content_type=response.content_type)

        key, iv = key_iv
        logger.debug("Received encrypted response, attempting decryption")
        try:
            data = self._cipher.decrypt(data, key, iv)
        except CryptoError as e:
            logger.error(f"Error decrypting data from {fetch_url}: {e}")
            return None

        logger.debug("Decryption successful")
        return FetchedPayload(data=data, content_type=response.content_type, decrypted=True)

    async def _run(self, download: DownloadMessage) -> Optional[DownloadResult]:
        payload = await self.fetch(download.url)
        if payload is None:
            return None
        return await self._persist(download, payload)

    async def _persist(
        self,
        download: DownloadMessage,
        payload: FetchedPayload
    ) -> Optional[DownloadResult]:
        try:
            locator = await self._blob_store.put(payload.data)
        except Exception as e:
            logger.error(f"Error storing downloaded data: {e}")
            return None

        media = MediaItem.incoming(filename_from_url(download.url), payload.content_type)
        media.locator = locator
        media.transfer_progress = 1.0
        try:
            await self._message_store.save(media)
        except Exception as e:
            logger.error(f"Error saving downloaded media: {e}")
            return None

        updated = await self._link(download, media)
        if updated is None:
            return None

        logger.info(f"Stored {media.filename} ({len(payload.data)} bytes)")
        return DownloadResult(
            url=download.url,
            media_item=media,
            size=len(payload.data),
            decrypted=payload.decrypted,
            message_updated=updated,
        )

    async def _link(self, download: DownloadMessage, media: MediaItem) -> Optional[bool]:
        """Point a download record at its media item. None if the store failed."""
        try:
            updated = await self._message_store.update(
                DownloadMessage, download.unique_id, media_item_id=media.unique_id
            )
        except Exception as e:
            logger.error(f"Error linking media to {download.unique_id}: {e}")
            return None
        if updated is None:
            logger.error(f"Message not found: {download.unique_id}")
        return updated is not None
