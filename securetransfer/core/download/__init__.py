"""Download module: fetch, decrypt and store incoming attachments."""
from .coordinator import DownloadPipeline
from .models import DownloadResult, FetchedPayload
from .protocols import PayloadFetcher

__all__ = [
    'DownloadPipeline',
    'DownloadResult',
    'FetchedPayload',
    'PayloadFetcher',
]
