"""Capability discovery: which services accept uploads and how large."""
from .models import CapabilityRecord, Service
from .protocols import DiscoveryTransport
from .registry import CapabilityRegistry, as_records
from .parser import advertised_upload_namespace, supports_http_upload, max_http_upload_size

__all__ = [
    'CapabilityRecord',
    'Service',
    'DiscoveryTransport',
    'CapabilityRegistry',
    'as_records',
    'advertised_upload_namespace',
    'supports_http_upload',
    'max_http_upload_size',
]
