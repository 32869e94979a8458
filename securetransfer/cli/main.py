"""securetransfer CLI - Main commands."""
import asyncio
import logging
from pathlib import Path
from urllib.parse import urlsplit

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="securetransfer",
    help="Encrypted HTTP upload/download helper",
    add_completion=False
)
console = Console()


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


@app.callback()
def main_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
):
    """Encrypted HTTP upload/download helper."""
    if verbose:
        from securetransfer import setup_logging

        logging.basicConfig(format="%(name)s: %(message)s")
        setup_logging(logging.DEBUG)


@app.command()
def links(
    text: str = typer.Argument(..., help="Message text to scan"),
):
    """List downloadable links found in text."""
    from securetransfer.core.urls import downloadable_urls, is_aesgcm

    urls = downloadable_urls(text)
    if not urls:
        console.print("[yellow]No downloadable links[/yellow]")
        return

    for url in urls:
        marker = "[green]encrypted[/green]" if is_aesgcm(url) else "plain"
        console.print(f"{url}  ({marker})")


@app.command()
def inspect(
    url: str = typer.Argument(..., help="Shared link"),
):
    """Show how a shared link will be fetched."""
    from securetransfer.core.urls import extract_key, filename_from_url, normalize_for_fetch

    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Scheme", urlsplit(url).scheme or "-")
    table.add_row("Fetch URL", normalize_for_fetch(url))
    table.add_row("File name", filename_from_url(url))
    table.add_row("Key material", "yes" if extract_key(url) else "no")
    console.print(table)


@app.command()
def fetch(
    url: str = typer.Argument(..., help="Shared link"),
    output: Path = typer.Option(None, "--output", "-o", help="Output file"),
):
    """Download a shared link, decrypting it when it carries a key."""
    from securetransfer import DownloadPipeline, MemoryBlobStore, MemoryMessageStore
    from securetransfer.core.urls import filename_from_url

    async def do_fetch():
        pipeline = DownloadPipeline(MemoryBlobStore(), MemoryMessageStore())
        try:
            payload = await pipeline.fetch(url)
        finally:
            await pipeline.close()

        if payload is None:
            console.print(f"[red]Download failed: {url}[/red]")
            raise typer.Exit(1)

        target = output or Path(filename_from_url(url))
        target.write_bytes(payload.data)
        state = "decrypted" if payload.decrypted else "plain"
        console.print(f"[green]Saved {target} ({len(payload.data):,} bytes, {state})[/green]")

    run_async(do_fetch())


@app.command()
def put(
    file_path: Path = typer.Argument(..., help="Local file to upload", exists=True),
    put_url: str = typer.Option(..., "--put-url", help="Slot PUT URL"),
    get_url: str = typer.Option(..., "--get-url", help="Slot GET URL"),
    encrypt: bool = typer.Option(False, "--encrypt", "-e", help="Encrypt and embed the key"),
    content_type: str = typer.Option(None, "--content-type", "-t", help="MIME type"),
):
    """Upload a file to a pre-negotiated slot."""
    from securetransfer import CapabilityRegistry, FileTransferError, UploadPipeline, UploadSlot
    from securetransfer.core.upload.services import guess_content_type

    async def do_put():
        pipeline = UploadPipeline(CapabilityRegistry())
        slot = UploadSlot(put_url=put_url, get_url=get_url)
        mime = content_type or guess_content_type(file_path.name, 'application/octet-stream')
        try:
            result = await pipeline.transfer_to_slot(
                file_path.read_bytes(), slot, should_encrypt=encrypt, content_type=mime
            )
        except FileTransferError as e:
            console.print(f"[red]Upload failed: {e}[/red]")
            raise typer.Exit(1)
        finally:
            await pipeline.close()

        console.print(f"[green]Uploaded {result.transmitted_size:,} bytes[/green]")
        console.print(result.url)

    run_async(do_put())


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
