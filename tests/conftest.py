"""Pytest fixtures for securetransfer tests."""
import asyncio
from typing import Dict, List, Optional, Tuple
from xml.etree import ElementTree

import pytest
from Crypto.Random import get_random_bytes

from securetransfer.core.http import HttpResponse
from securetransfer.core.storage import MemoryBlobStore, MemoryMessageStore


def build_disco_info(max_size: Optional[int] = 1024, namespace: str = 'urn:xmpp:http:upload:0') -> str:
    """Build a disco#info payload advertising HTTP upload."""
    form = ''
    if max_size is not None:
        form = (
            '<x xmlns="jabber:x:data" type="result">'
            '<field var="FORM_TYPE" type="hidden">'
            f'<value>{namespace}</value>'
            '</field>'
            f'<field var="max-file-size"><value>{max_size}</value></field>'
            '</x>'
        )
    return (
        '<query xmlns="http://jabber.org/protocol/disco#info">'
        '<identity category="store" type="file" name="HTTP File Upload"/>'
        f'<feature var="{namespace}"/>'
        f'{form}'
        '</query>'
    )


def build_slot_response(
    put_url: str = 'https://upload.example.com/put/abc/photo.jpg',
    get_url: str = 'https://upload.example.com/get/abc/photo.jpg',
    headers: Optional[Dict[str, str]] = None
) -> ElementTree.Element:
    """Build a successful slot response IQ."""
    header_xml = ''.join(
        f'<header name="{name}">{value}</header>' for name, value in (headers or {}).items()
    )
    return ElementTree.fromstring(
        '<iq type="result" id="1">'
        '<slot xmlns="urn:xmpp:http:upload:0">'
        f'<put url="{put_url}">{header_xml}</put>'
        f'<get url="{get_url}"/>'
        '</slot>'
        '</iq>'
    )


class FakeDiscovery:
    """Discovery transport returning canned capabilities."""

    def __init__(self, fetched=None, cached=None):
        self.fetched = fetched if fetched is not None else {}
        self.cached = cached
        self.fetch_calls = 0

    def cached_capabilities(self):
        return self.cached

    async def fetch_capabilities(self):
        self.fetch_calls += 1
        return self.fetched


class FakeIqTransport:
    """IQ transport answering every request with one response."""

    def __init__(self, response=None, error: Optional[Exception] = None):
        self.response = response if response is not None else build_slot_response()
        self.error = error
        self.sent: List[Tuple[str, ElementTree.Element]] = []

    async def send_iq(self, to, iq):
        self.sent.append((to, iq))
        if self.error is not None:
            raise self.error
        return self.response


class FakeHttp:
    """HTTP transport recording PUTs and serving GETs from a dict."""

    def __init__(self, put_status: int = 201, put_error: Optional[Exception] = None):
        self.put_status = put_status
        self.put_error = put_error
        self.puts: List[Tuple[str, bytes, Dict[str, str]]] = []
        self.resources: Dict[str, HttpResponse] = {}
        self.gets: List[str] = []
        self.gate: Optional[asyncio.Event] = None

    async def put(self, url, data, headers=None):
        self.puts.append((url, data, dict(headers or {})))
        if self.put_error is not None:
            raise self.put_error
        return self.put_status

    async def get(self, url):
        self.gets.append(url)
        if self.gate is not None:
            await self.gate.wait()
        if url not in self.resources:
            return HttpResponse(status=404, body=b'')
        return self.resources[url]


@pytest.fixture
def envelope_bytes():
    """Returns a (key, iv) pair of the right sizes."""
    return get_random_bytes(32), get_random_bytes(16)


@pytest.fixture
def blob_store():
    return MemoryBlobStore()


@pytest.fixture
def message_store():
    return MemoryMessageStore()


@pytest.fixture
def fake_http():
    return FakeHttp()


@pytest.fixture
def fake_iq():
    return FakeIqTransport()


@pytest.fixture
def upload_capabilities():
    """One service accepting up to 1024 bytes."""
    return {"upload.example.com": build_disco_info(1024)}


@pytest.fixture
def disco_info():
    """Factory for disco#info payloads."""
    return build_disco_info


@pytest.fixture
def slot_response():
    """Factory for slot response IQs."""
    return build_slot_response


@pytest.fixture
def discovery_factory():
    """Factory for fake discovery transports."""
    return FakeDiscovery


@pytest.fixture
def iq_factory():
    """Factory for fake IQ transports."""
    return FakeIqTransport
