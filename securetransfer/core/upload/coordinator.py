"""
Upload coordinator.

Orchestrates the upload process using injected dependencies:
resolve source, check service and size, optionally encrypt, negotiate a
slot, PUT the bytes and build the shareable URL.
"""
import asyncio
import time
from typing import Callable, Optional, Tuple

import aiohttp

from ..capabilities import CapabilityRegistry
from ..config import TransferConfig
from ..crypto import AESGCMService, EncryptionEnvelope, TAG_SIZE, generate_envelope
from ..exceptions import (
    ExceedsMaxSizeError,
    FileTransferError,
    NoServersError,
    NoSlotError,
    ServerError,
    UnknownTransferError,
)
from ..http import HttpTransport
from ..logging import get_logger
from ..storage import MediaBlobStore
from ..urls import embed_envelope
from .models import TransferRequest, UploadJob, UploadResult, UploadSlot, UploadState
from .protocols import PayloadUploader, SlotRequester
from .services import SourceResolver

logger = get_logger('securetransfer.upload.coordinator')


class UploadPipeline:
    """
    Coordinates one upload per call.

    Steps run strictly in order and the first failure ends the request:

        IDLE -> SOURCE_RESOLVED -> SIZE_CHECKED -> ENCRYPTED | PASSTHROUGH
             -> SLOT_REQUESTED -> TRANSFERRED -> FINALIZED

    Any step may end in FAILED; the error raised is always a
    FileTransferError subclass and no URL is produced.
    """

    def __init__(
        self,
        registry: CapabilityRegistry,
        slot_requester: Optional[SlotRequester] = None,
        http: Optional[PayloadUploader] = None,
        blob_store: Optional[MediaBlobStore] = None,
        config: Optional[TransferConfig] = None,
        envelope_factory: Callable[[], EncryptionEnvelope] = generate_envelope
    ):
        """
        Initialize upload pipeline.

        Args:
            registry: Source of the upload service
            slot_requester: Slot negotiator (needed unless only transfer_to_slot is used)
            http: Transport for the PUT (an owned HttpTransport by default)
            blob_store: Store used for locator sources
            config: Transfer configuration
            envelope_factory: Key material generator
        """
        self._config = config or TransferConfig.default()
        self._registry = registry
        self._slots = slot_requester
        self._owns_http = http is None
        self._http = http or HttpTransport(self._config)
        self._resolver = SourceResolver(blob_store, self._config)
        self._cipher = AESGCMService()
        self._envelope_factory = envelope_factory

    async def close(self) -> None:
        """Release the HTTP transport if this pipeline created it."""
        if self._owns_http and isinstance(self._http, HttpTransport):
            await self._http.close()

    async def upload(self, request: TransferRequest) -> UploadResult:
        """
        Execute the complete upload process.

        Args:
            request: What to upload

        Returns:
            UploadResult with the shareable URL

        Raises:
            TransferFileNotFoundError: If no source can be read
            NoServersError: If no upload service is known
            ExceedsMaxSizeError: If the transmitted size is over the limit
            KeyGenerationError: If key material can't be generated
            CryptoError: If encryption fails
            NoSlotError: If the service assigns no slot
            ServerError: If the PUT fails or returns another status than 200/201
            UrlFormattingError: If the shareable URL can't be built
        """
        return await self.run(UploadJob(request=request))

    async def run(self, job: UploadJob) -> UploadResult:
        """Drive a job through the state machine."""
        start = time.time()
        try:
            result = await self._run(job)
        except FileTransferError as e:
            self._fail(job, e)
            raise
        except Exception as e:
            error = UnknownTransferError(f"Upload failed: {e}", cause=e)
            self._fail(job, error)
            raise error from e

        elapsed = time.time() - start
        logger.info(f"Upload of {job.filename} completed in {elapsed:.2f}s: {result.slot.get_url}")
        return result

    async def _run(self, job: UploadJob) -> UploadResult:
        request = job.request

        # Step 1: Resolve source
        job.data, job.filename, job.content_type = await self._resolver.resolve(request)
        self._transition(job, UploadState.SOURCE_RESOLVED)

        # Step 2: Service check
        service = self._registry.best_service()
        if service is None:
            logger.warning("No HTTP upload servers available")
            raise NoServersError("No upload service available")
        job.service = service

        # Step 3: Size check against what will be transmitted
        transmitted = len(job.data) + (TAG_SIZE if request.should_encrypt else 0)
        if transmitted > service.max_upload_size:
            logger.error(f"HTTP upload exceeds max size {transmitted} > {service.max_upload_size}")
            raise ExceedsMaxSizeError(transmitted, service.max_upload_size)
        self._transition(job, UploadState.SIZE_CHECKED)

        # Step 4: Conditional encryption
        job.data, job.envelope = self._encrypt(job.data, request.should_encrypt)
        self._transition(
            job, UploadState.ENCRYPTED if job.envelope else UploadState.PASSTHROUGH
        )

        # Step 5: Slot negotiation and transfer
        if self._slots is None:
            raise NoSlotError("No slot requester configured")
        job.slot = await self._slots.request_slot(
            service, job.filename, len(job.data), job.content_type
        )
        self._transition(job, UploadState.SLOT_REQUESTED)

        await self._put(job.slot, job.data, job.content_type)
        self._transition(job, UploadState.TRANSFERRED)

        # Step 6: Finalize URL
        job.url = self._finalize(job.slot, job.envelope)
        self._transition(job, UploadState.FINALIZED)

        return UploadResult(
            url=job.url,
            slot=job.slot,
            transmitted_size=len(job.data),
            service=service,
            envelope=job.envelope,
        )

    async def transfer_to_slot(
        self,
        data: bytes,
        slot: UploadSlot,
        should_encrypt: bool = False,
        content_type: Optional[str] = None
    ) -> UploadResult:
        """
        Upload to a slot negotiated elsewhere.

        Skips discovery, size check and slot negotiation.

        Args:
            data: Plaintext bytes
            slot: Pre-negotiated slot
            should_encrypt: Encrypt and embed the key in the URL
            content_type: MIME type sent with the PUT

        Returns:
            UploadResult with the shareable URL
        """
        payload, envelope = self._encrypt(data, should_encrypt)
        await self._put(slot, payload, content_type or self._config.default_content_type)
        return UploadResult(
            url=self._finalize(slot, envelope),
            slot=slot,
            transmitted_size=len(payload),
            envelope=envelope,
        )

    def _encrypt(
        self,
        data: bytes,
        should_encrypt: bool
    ) -> Tuple[bytes, Optional[EncryptionEnvelope]]:
        if not should_encrypt:
            return data, None
        envelope = self._envelope_factory()
        encrypted = self._cipher.encrypt(data, envelope.key, envelope.iv)
        logger.debug(f"Encrypted {len(data)} bytes to {len(encrypted)} bytes")
        return encrypted, envelope

    async def _put(self, slot: UploadSlot, data: bytes, content_type: str) -> None:
        headers = {'Content-Type': content_type, **slot.put_headers}
        try:
            status = await self._http.put(slot.put_url, data, headers)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.error(f"Upload to {slot.put_url} failed: {e}")
            raise ServerError(f"Upload transfer failed: {e}", cause=e) from e

        if status not in self._config.success_statuses:
            logger.error(f"Upload to {slot.put_url} returned HTTP {status}")
            raise ServerError(f"Upload returned HTTP {status}", status=status)

    @staticmethod
    def _finalize(slot: UploadSlot, envelope: Optional[EncryptionEnvelope]) -> str:
        if envelope is None:
            return slot.get_url
        return embed_envelope(slot.get_url, envelope)

    @staticmethod
    def _transition(job: UploadJob, state: UploadState) -> None:
        logger.debug(f"{job.filename}: {job.state.value} -> {state.value}")
        job.state = state

    @staticmethod
    def _fail(job: UploadJob, error: Exception) -> None:
        logger.error(f"Upload of {job.filename or 'request'} failed in state {job.state.value}: {error}")
        job.error = error
        job.state = UploadState.FAILED
