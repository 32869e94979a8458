"""
Shareable URL handling.

Encrypted links use the ``aesgcm`` scheme and carry ``hex(iv || key)`` in
the fragment:

    aesgcm://upload.example.com/slot/photo.jpg#<96 hex chars>

The marker scheme is never dereferenced; it is rewritten to ``https``
before fetching and the fragment stays on this side of the wire.
"""
import re
from enum import Enum
from typing import List, Optional, Tuple
from urllib.parse import urlsplit, urlunsplit

from .crypto import EncryptionEnvelope, IV_SIZE, KEY_SIZE
from .exceptions import UrlFormattingError


class URLScheme(str, Enum):
    """Schemes recognized for attachments."""

    HTTPS = 'https'
    AESGCM = 'aesgcm'


DOWNLOADABLE_SCHEMES = (URLScheme.HTTPS.value, URLScheme.AESGCM.value)

KEY_IV_LENGTH = IV_SIZE + KEY_SIZE

_LINK_PATTERN = re.compile(r'(?<![\w+.-])(?:https|aesgcm)://[^\s<>"\']+', re.IGNORECASE)
_TRAILING_PUNCTUATION = '.,;:!?)]}\''


def is_aesgcm(url: str) -> bool:
    """True when the URL uses the encrypted marker scheme."""
    return urlsplit(url).scheme.lower() == URLScheme.AESGCM.value


def embed_key(base_read_url: str, iv: bytes, key: bytes) -> str:
    """
    Build an encrypted shareable URL.

    Args:
        base_read_url: Read location returned with the upload slot
        iv: 16-byte nonce
        key: 32-byte key

    Returns:
        URL with the ``aesgcm`` scheme and ``hex(iv || key)`` as fragment

    Raises:
        UrlFormattingError: If the URL can't be decomposed or the key
            material has the wrong size
    """
    if len(iv) != IV_SIZE or len(key) != KEY_SIZE:
        raise UrlFormattingError(
            f"Key material must be {IV_SIZE}+{KEY_SIZE} bytes, "
            f"got {len(iv)}+{len(key)}"
        )
    try:
        parts = urlsplit(base_read_url)
    except ValueError as e:
        raise UrlFormattingError(f"Invalid URL: {base_read_url}", cause=e) from e

    if not parts.scheme or not parts.netloc:
        raise UrlFormattingError(f"URL has no scheme or host: {base_read_url}")

    return urlunsplit((
        URLScheme.AESGCM.value,
        parts.netloc,
        parts.path,
        parts.query,
        (iv + key).hex(),
    ))


def embed_envelope(base_read_url: str, envelope: EncryptionEnvelope) -> str:
    """Same as embed_key, taking an envelope."""
    return embed_key(base_read_url, envelope.iv, envelope.key)


def extract_key(url: str) -> Optional[Tuple[bytes, bytes]]:
    """
    Read key material from an encrypted link.

    Args:
        url: Shareable URL as received, fragment included

    Returns:
        (key, iv) tuple, or None if the link is plaintext
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return None

    if parts.scheme.lower() != URLScheme.AESGCM.value or not parts.fragment:
        return None

    try:
        data = bytes.fromhex(parts.fragment)
    except ValueError:
        return None

    if len(data) != KEY_IV_LENGTH:
        return None

    return data[IV_SIZE:], data[:IV_SIZE]


def extract_envelope(url: str) -> Optional[EncryptionEnvelope]:
    """Same as extract_key, returning an envelope."""
    found = extract_key(url)
    if found is None:
        return None
    key, iv = found
    return EncryptionEnvelope(key=key, iv=iv)


def normalize_for_fetch(url: str) -> str:
    """
    Convert a link to the form that is actually requested.

    ``aesgcm`` links become ``https`` without their fragment; any other
    URL is returned unchanged.
    """
    parts = urlsplit(url)
    if parts.scheme.lower() != URLScheme.AESGCM.value:
        return url
    return urlunsplit((URLScheme.HTTPS.value, parts.netloc, parts.path, parts.query, ''))


def dedupe_key(url: str) -> str:
    """Identity of the remote resource behind a link, fragment excluded."""
    parts = urlsplit(normalize_for_fetch(url))
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), parts.path, parts.query, ''))


def filename_from_url(url: str, default: str = 'download') -> str:
    """Last path component of a URL."""
    path = urlsplit(url).path.rstrip('/')
    name = path.rsplit('/', 1)[-1] if path else ''
    return name or default


def downloadable_urls(text: Optional[str]) -> List[str]:
    """
    Extract links that should be auto-downloaded from message text.

    Only ``https`` and ``aesgcm`` links are returned, in order of
    appearance. Malformed links (e.g. a broken IPv6 host) are skipped.
    """
    if not text:
        return []

    urls = []
    for match in _LINK_PATTERN.finditer(text):
        url = match.group(0).rstrip(_TRAILING_PUNCTUATION)
        try:
            parts = urlsplit(url)
        except ValueError:
            continue
        if parts.scheme.lower() in DOWNLOADABLE_SCHEMES and parts.netloc:
            urls.append(url)
    return urls
