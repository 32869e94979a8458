"""Tests for shareable URL handling."""
import pytest

from securetransfer.core.crypto import EncryptionEnvelope
from securetransfer.core.exceptions import UrlFormattingError
from securetransfer.core.urls import (
    dedupe_key,
    downloadable_urls,
    embed_envelope,
    embed_key,
    extract_envelope,
    extract_key,
    filename_from_url,
    is_aesgcm,
    normalize_for_fetch,
)

GET_URL = 'https://files.example.com/slot/abc/photo.jpg'


class TestEmbedKey:
    """Test suite for building encrypted links."""

    def test_scheme_and_fragment(self, envelope_bytes):
        """Test link uses aesgcm and carries 96 hex chars."""
        key, iv = envelope_bytes
        url = embed_key(GET_URL, iv, key)

        assert url.startswith('aesgcm://files.example.com/slot/abc/photo.jpg#')
        fragment = url.split('#', 1)[1]
        assert len(fragment) == 96
        assert fragment == (iv + key).hex()

    def test_extract_inverts_embed(self, envelope_bytes):
        """Test extract_key returns the embedded key and IV."""
        key, iv = envelope_bytes

        assert extract_key(embed_key(GET_URL, iv, key)) == (key, iv)

    def test_query_is_kept(self, envelope_bytes):
        """Test query string survives the rewrite."""
        key, iv = envelope_bytes
        url = embed_key('https://h.example.com/p?token=1', iv, key)

        assert normalize_for_fetch(url) == 'https://h.example.com/p?token=1'

    def test_envelope_helpers(self, envelope_bytes):
        """Test envelope variants agree with the tuple variants."""
        key, iv = envelope_bytes
        envelope = EncryptionEnvelope(key=key, iv=iv)

        url = embed_envelope(GET_URL, envelope)

        assert extract_envelope(url) == envelope

    def test_bad_key_size(self, envelope_bytes):
        """Test wrong key material size raises error."""
        key, iv = envelope_bytes

        with pytest.raises(UrlFormattingError):
            embed_key(GET_URL, iv, key[:16])

    def test_missing_host(self, envelope_bytes):
        """Test URL without host raises error."""
        key, iv = envelope_bytes

        with pytest.raises(UrlFormattingError):
            embed_key('/relative/path', iv, key)


class TestExtractKey:
    """Test suite for reading key material."""

    def test_https_has_no_key(self):
        """Test plain links carry no key even with a fragment."""
        assert extract_key(GET_URL + '#' + 'ab' * 48) is None

    def test_short_fragment(self):
        """Test fragment of the wrong size is ignored."""
        assert extract_key('aesgcm://h.example.com/f#abcd') is None

    def test_non_hex_fragment(self):
        """Test non-hex fragment is ignored."""
        assert extract_key('aesgcm://h.example.com/f#' + 'zz' * 48) is None

    def test_missing_fragment(self):
        """Test aesgcm link without fragment carries no key."""
        assert extract_key('aesgcm://h.example.com/f') is None


class TestNormalization:
    """Test suite for fetch URL and identity helpers."""

    def test_aesgcm_becomes_https(self):
        """Test marker scheme is rewritten and fragment dropped."""
        url = 'aesgcm://h.example.com/a/b.png#' + '00' * 48

        assert normalize_for_fetch(url) == 'https://h.example.com/a/b.png'

    def test_https_unchanged(self):
        """Test other links are returned as given."""
        assert normalize_for_fetch(GET_URL) == GET_URL

    def test_is_aesgcm(self):
        assert is_aesgcm('AESGCM://h.example.com/x')
        assert not is_aesgcm(GET_URL)

    def test_dedupe_ignores_fragment(self):
        """Test two keys for one location share an identity."""
        first = 'aesgcm://h.example.com/f#' + '00' * 48
        second = 'aesgcm://H.example.com/f#' + '11' * 48

        assert dedupe_key(first) == dedupe_key(second) == 'https://h.example.com/f'

    def test_filename(self):
        assert filename_from_url(GET_URL) == 'photo.jpg'
        assert filename_from_url('https://h.example.com/') == 'download'


class TestDownloadableUrls:
    """Test suite for scanning message text."""

    def test_finds_both_schemes_in_order(self):
        """Test https and aesgcm links are found in order."""
        text = f"look {GET_URL} and aesgcm://h.example.com/x.bin#{'ab' * 48}."

        assert downloadable_urls(text) == [
            GET_URL,
            f"aesgcm://h.example.com/x.bin#{'ab' * 48}",
        ]

    def test_ignores_other_schemes(self):
        """Test http and ftp links are not downloadable."""
        assert downloadable_urls("http://h.example.com/a ftp://h.example.com/b") == []

    def test_empty_text(self):
        assert downloadable_urls(None) == []
        assert downloadable_urls("") == []

    def test_strips_trailing_punctuation(self):
        assert downloadable_urls(f"({GET_URL})") == [GET_URL]

    def test_skips_malformed_link(self):
        """Test an unparseable link does not hide the links after it."""
        text = f"see https://[oops and {GET_URL}"

        assert downloadable_urls(text) == [GET_URL]
