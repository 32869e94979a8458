"""
Slot negotiation (XEP-0363).

Asks an upload service for a one-time write/read URL pair:

    <iq type="get" to="upload.example.com">
      <request xmlns="urn:xmpp:http:upload:0"
               filename="photo.jpg" size="23456" content-type="image/jpeg"/>
    </iq>

    <iq type="result">
      <slot xmlns="urn:xmpp:http:upload:0">
        <put url="https://upload.example.com/.../photo.jpg">
          <header name="Authorization">Basic ...</header>
        </put>
        <get url="https://download.example.com/.../photo.jpg"/>
      </slot>
    </iq>
"""
import uuid
from typing import Dict, Optional, Tuple
from xml.etree.ElementTree import Element, SubElement

from ..capabilities import Service
from ..capabilities.parser import local_name
from ..config import LEGACY_HTTP_UPLOAD_NAMESPACE, TransferConfig
from ..exceptions import NoSlotError
from ..logging import get_logger
from .models import UploadSlot
from .protocols import IqTransport

# Only these PUT headers may be forwarded from a slot
ALLOWED_PUT_HEADERS = {
    'authorization': 'Authorization',
    'cookie': 'Cookie',
    'expires': 'Expires',
}


def _child(element: Element, name: str) -> Optional[Element]:
    for child in element:
        if isinstance(child.tag, str) and local_name(child.tag) == name:
            return child
    return None


def build_slot_request(
    address: str,
    filename: str,
    size: int,
    content_type: str,
    namespace: str
) -> Element:
    """Build the <iq type="get"> slot request."""
    iq = Element('iq', {'type': 'get', 'to': address, 'id': uuid.uuid4().hex})
    tag = f'{{{namespace}}}request'
    if namespace == LEGACY_HTTP_UPLOAD_NAMESPACE:
        request = SubElement(iq, tag)
        SubElement(request, 'filename').text = filename
        SubElement(request, 'size').text = str(size)
        SubElement(request, 'content-type').text = content_type
    else:
        SubElement(iq, tag, {
            'filename': filename,
            'size': str(size),
            'content-type': content_type,
        })
    return iq


def _location(element: Element) -> Tuple[Optional[str], Dict[str, str]]:
    url = element.get('url') or (element.text or '').strip() or None
    headers = {}
    for child in element:
        if not isinstance(child.tag, str) or local_name(child.tag) != 'header':
            continue
        name = ALLOWED_PUT_HEADERS.get((child.get('name') or '').lower())
        if name:
            headers[name] = (child.text or '').strip()
    return url, headers


def _error_text(response: Element) -> str:
    error = _child(response, 'error')
    if error is None:
        return 'unknown error'
    conditions = [local_name(c.tag) for c in error if isinstance(c.tag, str)]
    return ', '.join(conditions) or error.get('type') or 'unknown error'


def parse_slot(response: Element) -> UploadSlot:
    """
    Extract the slot from a response IQ.

    Raises:
        NoSlotError: If the response is an error or has no usable slot
    """
    if response.get('type') == 'error':
        raise NoSlotError(f"Slot request rejected: {_error_text(response)}")

    slot = _child(response, 'slot')
    if slot is None:
        raise NoSlotError("Response carries no slot")

    put = _child(slot, 'put')
    get = _child(slot, 'get')
    if put is None or get is None:
        raise NoSlotError("Slot is missing put or get location")

    put_url, put_headers = _location(put)
    get_url, _ = _location(get)
    if not put_url or not get_url:
        raise NoSlotError("Slot has an empty put or get URL")

    return UploadSlot(put_url=put_url, get_url=get_url, put_headers=put_headers)


class SlotNegotiator:
    """
    Requests upload slots from a service.

    One request per call; no retry and no fallback to another service.
    """

    def __init__(self, transport: IqTransport, config: Optional[TransferConfig] = None):
        """
        Initialize negotiator.

        Args:
            transport: IQ transport of the chat connection
            config: Transfer configuration (fallback slot namespace)
        """
        self._transport = transport
        self._config = config or TransferConfig.default()
        self._logger = get_logger('securetransfer.upload.slot')

    async def request_slot(
        self,
        service: Service,
        filename: str,
        size: int,
        content_type: str
    ) -> UploadSlot:
        """
        Request a one-time upload slot.

        Args:
            service: Service to ask
            filename: Name of the file
            size: Exact number of bytes that will be PUT
            content_type: MIME type of the bytes

        Returns:
            UploadSlot with put/get URLs

        Raises:
            NoSlotError: If the service declines or the exchange fails
        """
        namespace = service.namespace or self._config.slot_namespace
        iq = build_slot_request(service.address, filename, size, content_type, namespace)
        self._logger.debug(f"Requesting slot from {service.address}: {filename} ({size} bytes, {content_type})")

        try:
            response = await self._transport.send_iq(service.address, iq)
        except Exception as e:
            self._logger.error(f"{service.address} failed to assign upload slot: {e}")
            raise NoSlotError(f"Slot request to {service.address} failed: {e}", cause=e) from e

        try:
            slot = parse_slot(response)
        except NoSlotError as e:
            self._logger.error(f"{service.address} failed to assign upload slot: {e}")
            raise

        self._logger.debug(f"Slot assigned by {service.address}: {slot.get_url}")
        return slot
