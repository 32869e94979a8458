"""
Wire the transfer manager into a chat client
"""
import asyncio

from securetransfer import (
    ChatMessage,
    DirectoryBlobStore,
    FileTransferManager,
    MemoryMessageStore,
    setup_logging,
)


class MyDiscovery:
    """Adapter over your XMPP library's service discovery."""

    def cached_capabilities(self):
        return None

    async def fetch_capabilities(self):
        # address -> <query xmlns="http://jabber.org/protocol/disco#info"> payload
        raise NotImplementedError


class MyIqTransport:
    """Adapter over your XMPP library's IQ sending."""

    async def send_iq(self, to, iq):
        raise NotImplementedError


async def main():
    setup_logging()
    messages = MemoryMessageStore()

    async with FileTransferManager(
        discovery=MyDiscovery(),
        iq_transport=MyIqTransport(),
        blob_store=DirectoryBlobStore("media"),
        message_store=messages,
    ) as manager:
        await manager.refresh_capabilities()

        # Outgoing: upload and queue the message carrying the link
        if manager.can_upload_files:
            message = await manager.send_file("photo.jpg", "bob@example.com", should_encrypt=True)
            print(message.error or f"Queued: {message.text}")

        # Incoming: download the links found in a received message
        incoming = ChatMessage(
            thread_id="alice@example.com",
            text="aesgcm://upload.example.com/get/abc/photo.jpg#...",
            is_incoming=True,
        )
        await messages.save(incoming)
        for result in await manager.create_and_download_items_if_needed(incoming):
            if result:
                print(f"Received {result.media_item.filename} ({result.size} bytes)")


if __name__ == "__main__":
    asyncio.run(main())
