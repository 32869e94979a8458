"""
Protocol definitions for capability discovery.

The chat transport that performs service discovery lives outside this
package; it only has to provide the interface below.
"""
from typing import Protocol, Optional, Mapping, Iterable, Union, runtime_checkable

from .models import CapabilityRecord, Payload


Capabilities = Union[Mapping[str, Payload], Iterable[CapabilityRecord]]


@runtime_checkable
class DiscoveryTransport(Protocol):
    """Source of raw capability records per remote address."""
    
    def cached_capabilities(self) -> Optional[Capabilities]:
        """
        Capabilities already known from a previous discovery.
        
        Returns:
            Records keyed by address, or None if discovery never completed
        """
        ...
    
    async def fetch_capabilities(self) -> Capabilities:
        """
        Run a fresh discovery of the server and its items.
        
        Returns:
            Records for every address that answered
        """
        ...
