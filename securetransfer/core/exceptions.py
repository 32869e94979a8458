"""
Custom exceptions for secure file transfers.

Every failure reported by the upload and download pipelines is one of the
classes below. Each carries a ``kind`` so callers that only need the
category (e.g. to show a message) don't have to match on classes.
"""
from enum import Enum
from typing import Optional


class TransferErrorKind(str, Enum):
    """Categories of transfer failures."""

    UNKNOWN = 'unknown'
    NO_SERVERS = 'no_servers'
    SERVER_ERROR = 'server_error'
    EXCEEDS_MAX_SIZE = 'exceeds_max_size'
    URL_FORMATTING = 'url_formatting'
    FILE_NOT_FOUND = 'file_not_found'
    KEY_GENERATION = 'key_generation'
    CRYPTO = 'crypto'


class FileTransferError(Exception):
    """Base exception for all transfer errors."""

    kind: TransferErrorKind = TransferErrorKind.UNKNOWN

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            cause: Underlying exception (if any)
        """
        self.cause = cause
        super().__init__(message)


class NoServersError(FileTransferError):
    """No eligible upload service is known."""
    kind = TransferErrorKind.NO_SERVERS


class ServerError(FileTransferError):
    """Non-success HTTP status or transport failure during slot/transfer."""

    kind = TransferErrorKind.SERVER_ERROR

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        cause: Optional[BaseException] = None
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            status: HTTP status returned by the server (if any)
            cause: Underlying exception (if any)
        """
        self.status = status
        super().__init__(message, cause)


class NoSlotError(ServerError):
    """The upload service declined or failed to assign a slot."""
    pass


class ExceedsMaxSizeError(FileTransferError):
    """Payload is larger than the service ceiling."""

    kind = TransferErrorKind.EXCEEDS_MAX_SIZE

    def __init__(self, size: int, max_size: int) -> None:
        self.size = size
        self.max_size = max_size
        super().__init__(f"Upload size {size} exceeds maximum {max_size}")


class UrlFormattingError(FileTransferError):
    """A shareable URL could not be built or parsed."""
    kind = TransferErrorKind.URL_FORMATTING


class TransferFileNotFoundError(FileTransferError):
    """No byte source could be resolved for an upload."""
    kind = TransferErrorKind.FILE_NOT_FOUND


class KeyGenerationError(FileTransferError):
    """The secure random source could not produce key material."""
    kind = TransferErrorKind.KEY_GENERATION


class CryptoError(FileTransferError):
    """Encryption, decryption or authentication failure."""
    kind = TransferErrorKind.CRYPTO


class UnknownTransferError(FileTransferError):
    """Catch-all for unexpected failures inside a pipeline."""
    kind = TransferErrorKind.UNKNOWN
