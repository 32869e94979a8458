"""
Protocol definitions for upload module.

Defines interfaces for dependency injection. The XMPP stream itself is an
external collaborator; slot negotiation only needs to send one IQ and get
its response.
"""
from typing import Protocol, Dict, Optional, runtime_checkable
from xml.etree.ElementTree import Element

from ..capabilities import Service
from .models import UploadSlot


@runtime_checkable
class IqTransport(Protocol):
    """Sends an IQ stanza and returns the matching response."""
    
    async def send_iq(self, to: str, iq: Element) -> Element:
        """
        Send an IQ and wait for its response.
        
        Args:
            to: Recipient address
            iq: <iq type="get|set"> element to send
            
        Returns:
            Response <iq type="result|error"> element
        """
        ...


class SlotRequester(Protocol):
    """Protocol for slot negotiation."""
    
    async def request_slot(
        self,
        service: Service,
        filename: str,
        size: int,
        content_type: str
    ) -> UploadSlot:
        """Request a one-time upload slot."""
        ...


class PayloadUploader(Protocol):
    """Protocol for the byte transfer step."""
    
    async def put(
        self,
        url: str,
        data: bytes,
        headers: Optional[Dict[str, str]] = None
    ) -> int:
        """PUT bytes and return the HTTP status."""
        ...
