"""Tests for FileTransferManager."""
import asyncio

import pytest

from securetransfer import FileTransferManager
from securetransfer.core.exceptions import NoServersError
from securetransfer.core.http import HttpResponse
from securetransfer.core.storage import ChatMessage, DownloadMessage, MediaItem
from securetransfer.core.upload import TransferRequest

GET_URL = 'https://upload.example.com/get/abc/photo.jpg'


@pytest.fixture
def manager(discovery_factory, upload_capabilities, fake_iq, blob_store, message_store, fake_http):
    return FileTransferManager(
        discovery=discovery_factory(fetched=upload_capabilities),
        iq_transport=fake_iq,
        blob_store=blob_store,
        message_store=message_store,
        http=fake_http,
    )


class TestCapabilities:
    """Test suite for capability refresh."""

    @pytest.mark.asyncio
    async def test_refresh(self, manager):
        assert not manager.can_upload_files

        services = await manager.refresh_capabilities()

        assert [s.address for s in services] == ['upload.example.com']
        assert manager.can_upload_files


class TestSend:
    """Test suite for outgoing transfers."""

    @pytest.mark.asyncio
    async def test_send_file_encrypted(self, manager, message_store, blob_store, fake_http, tmp_path):
        """Test sending a file queues a message carrying the aesgcm link."""
        path = tmp_path / "photo.jpg"
        path.write_bytes(b"0123456789")
        await manager.refresh_capabilities()

        message = await manager.send_file(path, 'bob@example.com', should_encrypt=True)

        assert message.text.startswith('aesgcm://upload.example.com/get/abc/photo.jpg#')
        assert message.queued
        assert message.error is None
        assert len(fake_http.puts[0][1]) == 26

        media = await message_store.read(MediaItem, message.media_item_id)
        assert media.transfer_progress == 1.0
        assert media.mime_type == 'image/jpeg'
        assert await blob_store.get(media.locator) == b"0123456789"

    @pytest.mark.asyncio
    async def test_send_file_without_servers(self, manager, fake_http, tmp_path):
        """Test failure is recorded on the message."""
        path = tmp_path / "photo.jpg"
        path.write_bytes(b"0123456789")

        message = await manager.send_file(path, 'bob@example.com', should_encrypt=False)

        assert message.error
        assert not message.queued
        assert message.text is None
        assert fake_http.puts == []

    @pytest.mark.asyncio
    async def test_send_file_missing(self, manager, tmp_path):
        await manager.refresh_capabilities()

        message = await manager.send_file(tmp_path / "gone.jpg", 'bob@example.com', should_encrypt=False)

        assert message.error
        assert not message.queued

    @pytest.mark.asyncio
    async def test_send_raises(self, manager, message_store):
        """Test send records and re-raises the error."""
        media = MediaItem('a.txt')
        message = ChatMessage(thread_id='bob@example.com', media_item_id=media.unique_id)
        await message_store.save(message)

        with pytest.raises(NoServersError):
            await manager.send(media, message, should_encrypt=False, prefetched_data=b"hi")

        stored = await message_store.read(ChatMessage, message.unique_id)
        assert 'No upload service' in stored.error

    @pytest.mark.asyncio
    async def test_submit_upload_completion(self, manager):
        """Test completion receives (url, None) once."""
        await manager.refresh_capabilities()
        calls = []

        manager.submit_upload(TransferRequest(data=b"hello"), lambda url, error: calls.append((url, error)))
        await manager.close()

        assert calls == [(GET_URL, None)]

    @pytest.mark.asyncio
    async def test_submit_upload_failure(self, manager):
        """Test completion receives (None, error) on failure."""
        calls = []

        manager.submit_upload(TransferRequest(data=b"hello"), lambda url, error: calls.append((url, error)))
        await manager.close()

        assert len(calls) == 1
        assert calls[0][0] is None
        assert isinstance(calls[0][1], NoServersError)


class TestReceive:
    """Test suite for incoming transfers."""

    @pytest.mark.asyncio
    async def test_downloads_links_in_message(self, manager, message_store, fake_http):
        """Test each link in a message gets a download record and media."""
        fake_http.resources['https://files.example.com/a.png'] = HttpResponse(200, b"a", content_type='image/png')
        fake_http.resources['https://files.example.com/b.txt'] = HttpResponse(200, b"b")
        message = ChatMessage(
            thread_id='alice@example.com',
            text='https://files.example.com/a.png and https://files.example.com/b.txt',
            is_incoming=True,
        )
        await message_store.save(message)

        results = await manager.create_and_download_items_if_needed(message)

        assert [r.media_item.filename for r in results] == ['a.png', 'b.txt']
        downloads = await message_store.query(DownloadMessage, parent_message_id=message.unique_id)
        assert len(downloads) == 2
        assert all(d.media_item_id for d in downloads)

    @pytest.mark.asyncio
    async def test_existing_records_reused(self, manager, message_store, fake_http):
        """Test download records are not duplicated on a second pass."""
        message = ChatMessage(thread_id='alice@example.com', text='https://files.example.com/a.png')
        await message_store.save(message)

        await manager.create_and_download_items_if_needed(message)
        await manager.create_and_download_items_if_needed(message)

        downloads = await message_store.query(DownloadMessage, parent_message_id=message.unique_id)
        assert len(downloads) == 1

    @pytest.mark.asyncio
    async def test_no_links(self, manager, message_store, fake_http):
        message = ChatMessage(thread_id='alice@example.com', text='no links here')

        assert await manager.create_and_download_items_if_needed(message) == []
        assert fake_http.gets == []

    @pytest.mark.asyncio
    async def test_malformed_link_skipped(self, manager, message_store, fake_http):
        """Test a broken link in a message does not stop the valid ones."""
        fake_http.resources['https://files.example.com/a.png'] = HttpResponse(200, b"a", content_type='image/png')
        message = ChatMessage(
            thread_id='alice@example.com',
            text='look https://[oops and https://files.example.com/a.png',
            is_incoming=True,
        )
        await message_store.save(message)

        results = await manager.create_and_download_items_if_needed(message)

        assert [r.media_item.filename for r in results] == ['a.png']
        assert fake_http.gets == ['https://files.example.com/a.png']

    @pytest.mark.asyncio
    async def test_message_with_media_skipped(self, manager, fake_http):
        message = ChatMessage(
            thread_id='alice@example.com',
            text='https://files.example.com/a.png',
            media_item_id='m1',
        )

        assert await manager.create_and_download_items_if_needed(message) == []
        assert fake_http.gets == []

    @pytest.mark.asyncio
    async def test_submit_download(self, manager, message_store, fake_http):
        fake_http.resources['https://files.example.com/a.png'] = HttpResponse(200, b"a")
        message = ChatMessage(thread_id='alice@example.com', text='https://files.example.com/a.png')
        download = DownloadMessage.for_message(message, 'https://files.example.com/a.png')
        await message_store.save(download)
        results = []

        manager.submit_download(download, results.append)
        await manager.close()

        assert len(results) == 1
        assert results[0].size == 1

    @pytest.mark.asyncio
    async def test_close_keeps_borrowed_http(self, manager, fake_http):
        """Test closing does not require an owned transport."""
        async with manager:
            await asyncio.sleep(0)
