"""Capability discovery models."""
from dataclasses import dataclass
from typing import Optional, Union
from xml.etree.ElementTree import Element


# A raw discovery <query/> element, or its serialized XML
Payload = Union[Element, str, bytes]


@dataclass(frozen=True)
class CapabilityRecord:
    """
    Raw discovery result for one remote address.
    
    Attributes:
        address: Remote identifier (e.g. 'upload.example.com')
        payload: disco#info <query/> element or its XML text
    """
    address: str
    payload: Payload


@dataclass(frozen=True)
class Service:
    """
    An upload service eligible for transfers.
    
    Attributes:
        address: Remote identifier slot requests are sent to
        max_upload_size: Largest accepted upload in bytes (always > 0)
        namespace: Upload namespace the service advertised (slot requests use it)
    """
    address: str
    max_upload_size: int
    namespace: Optional[str] = None
    
    def accepts(self, size: int) -> bool:
        """True if a payload of `size` bytes fits under the ceiling."""
        return size <= self.max_upload_size
