"""
Upload a file to a slot negotiated elsewhere
"""
import asyncio
from pathlib import Path

from securetransfer import CapabilityRegistry, UploadPipeline, UploadSlot


async def main():
    pipeline = UploadPipeline(CapabilityRegistry())
    slot = UploadSlot(
        put_url="https://upload.example.com/put/abc/photo.jpg",
        get_url="https://upload.example.com/get/abc/photo.jpg",
        put_headers={"Authorization": "Basic ..."},
    )

    try:
        # Plain upload: the slot's read URL is the shareable link
        result = await pipeline.transfer_to_slot(Path("photo.jpg").read_bytes(), slot)
        print(f"Shared: {result.url}")

        # Encrypted upload: aesgcm:// link with the key in the fragment
        result = await pipeline.transfer_to_slot(
            Path("photo.jpg").read_bytes(), slot, should_encrypt=True, content_type="image/jpeg"
        )
        print(f"Shared: {result.url} ({result.transmitted_size} bytes sent)")
    finally:
        await pipeline.close()


if __name__ == "__main__":
    asyncio.run(main())
