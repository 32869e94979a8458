"""
Capability registry.

Keeps the current snapshot of upload services derived from discovery.
"""
from collections.abc import Mapping
from typing import Callable, List, Optional, Tuple
from xml.etree import ElementTree

from ..config import TransferConfig
from ..events import EventEmitter
from ..logging import get_logger
from .models import CapabilityRecord, Service
from .parser import advertised_upload_namespace, max_http_upload_size, to_element
from .protocols import Capabilities, DiscoveryTransport

logger = get_logger('securetransfer.capabilities')


def as_records(capabilities: Capabilities) -> List[CapabilityRecord]:
    """Normalize an address->payload mapping or record iterable to records."""
    if isinstance(capabilities, Mapping):
        return [CapabilityRecord(address, payload) for address, payload in capabilities.items()]
    return list(capabilities)


class CapabilityRegistry:
    """
    Current list of eligible upload services.
    
    The snapshot is an immutable tuple replaced in one assignment, so
    readers never see a half-built list. Subscribers are notified with
    the new snapshot after each replacement.
    
    Example:
        >>> registry = CapabilityRegistry(discovery)
        >>> await registry.refresh()
        >>> if registry.can_upload:
        ...     service = registry.best_service()
    """
    
    SERVICES_CHANGED = 'services_changed'
    
    def __init__(
        self,
        discovery: Optional[DiscoveryTransport] = None,
        config: Optional[TransferConfig] = None
    ):
        """
        Initialize registry.
        
        Args:
            discovery: Transport used by refresh()
            config: Transfer configuration (upload namespaces)
        """
        self._discovery = discovery
        self._config = config or TransferConfig.default()
        self._services: Tuple[Service, ...] = ()
        self._events = EventEmitter('securetransfer.capabilities.events')
    
    @property
    def services(self) -> Tuple[Service, ...]:
        """Current snapshot in discovery order."""
        return self._services
    
    @property
    def can_upload(self) -> bool:
        """True if at least one service is known."""
        return bool(self._services)
    
    def best_service(self) -> Optional[Service]:
        """First service in discovery order, or None."""
        services = self._services
        return services[0] if services else None
    
    def subscribe(self, callback: Callable[[Tuple[Service, ...]], None]) -> None:
        """Call `callback(services)` whenever the snapshot is replaced."""
        self._events.on(self.SERVICES_CHANGED, callback)
    
    def unsubscribe(self, callback: Callable[[Tuple[Service, ...]], None]) -> None:
        """Remove a subscription."""
        self._events.off(self.SERVICES_CHANGED, callback)
    
    def derive_service(self, record: CapabilityRecord) -> Optional[Service]:
        """
        Derive a Service from one record.
        
        Returns:
            Service if the record advertises upload with a size > 0
        """
        try:
            query = to_element(record.payload)
        except ElementTree.ParseError as e:
            logger.warning(f"Dropping capabilities of {record.address}: {e}")
            return None
        
        namespaces = self._config.upload_namespaces
        namespace = advertised_upload_namespace(query, namespaces)
        if namespace is None:
            return None
        
        max_size = max_http_upload_size(query, namespaces)
        if max_size <= 0:
            logger.debug(f"{record.address} supports upload but declares no max size")
            return None
        
        return Service(address=record.address, max_upload_size=max_size, namespace=namespace)
    
    def rebuild(self, records: Capabilities) -> Tuple[Service, ...]:
        """
        Replace the snapshot from a batch of discovery records.
        
        Args:
            records: Records in discovery order (or address->payload mapping)
            
        Returns:
            The new snapshot
        """
        services = []
        for record in as_records(records):
            service = self.derive_service(record)
            if service is not None:
                services.append(service)
        
        self._services = tuple(services)
        logger.info(f"Upload services: {[s.address for s in self._services]}")
        self._events.emit(self.SERVICES_CHANGED, self._services)
        return self._services
    
    def capabilities_discovered(self, records: Capabilities) -> Tuple[Service, ...]:
        """Entry point for transports that push discovery results."""
        return self.rebuild(records)
    
    async def refresh(self) -> Tuple[Service, ...]:
        """
        Rebuild from cached capabilities, then from a fresh discovery.
        
        Returns:
            Snapshot after the fresh discovery
        """
        if self._discovery is None:
            logger.debug("No discovery transport, keeping current services")
            return self._services
        
        cached = self._discovery.cached_capabilities()
        if cached is not None:
            self.rebuild(cached)
        
        logger.debug("Fetching capabilities")
        fetched = await self._discovery.fetch_capabilities()
        return self.rebuild(fetched)
