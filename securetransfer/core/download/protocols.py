"""Protocol definitions for download module."""
from typing import Protocol

from ..http import HttpResponse


class PayloadFetcher(Protocol):
    """Protocol for the network read."""
    
    async def get(self, url: str) -> HttpResponse:
        """GET a fetchable URL."""
        ...
