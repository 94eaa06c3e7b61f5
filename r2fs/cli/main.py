"""r2fs CLI - Main commands."""
import asyncio
import signal
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.table import Table

from ..client import R2Client
from ..core.api import Endpoint
from ..core.exceptions import CancellationError, ConfigurationError, R2FsError
from ..core.storage import file_category, filter_entries, format_file_size, sort_entries
from ..core.upload import CancellationToken

app = typer.Typer(
    name="r2fs",
    help="Browse and upload to an object-store bucket as folders",
    add_completion=False
)
console = Console()

_connection = {}


@app.callback()
def main(
    endpoint: str = typer.Option(None, "--endpoint", envvar="R2FS_ENDPOINT_URL", help="Gateway URL"),
    api_key: str = typer.Option(None, "--api-key", envvar="R2FS_API_KEY", help="Gateway API key"),
    custom_domain: str = typer.Option(None, "--custom-domain", envvar="R2FS_CUSTOM_DOMAIN", help="Public domain"),
):
    """Connection options apply to every command."""
    _connection.update(url=endpoint, api_key=api_key, custom_domain=custom_domain)


def get_endpoint() -> Endpoint:
    if not _connection.get('url') or not _connection.get('api_key'):
        console.print("[red]No endpoint configured. Use --endpoint/--api-key or R2FS_ENDPOINT_URL/R2FS_API_KEY.[/red]")
        raise typer.Exit(1)
    try:
        return Endpoint(
            url=_connection['url'],
            api_key=_connection['api_key'],
            custom_domain=_connection.get('custom_domain')
        )
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


def run_async(coro):
    """Run async function, turning library errors into exit codes."""
    try:
        return asyncio.run(coro)
    except CancellationError:
        console.print("[yellow]Cancelled[/yellow]")
        raise typer.Exit(130)
    except R2FsError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


def install_cancel_handler(token: CancellationToken) -> None:
    """Ctrl-C requests cooperative cancellation instead of killing the loop."""
    try:
        asyncio.get_running_loop().add_signal_handler(signal.SIGINT, token.cancel)
    except (NotImplementedError, RuntimeError):
        pass


def split_remote(path: str):
    """Split "/a/b/name" into ("/a/b", "name")."""
    stripped = path.strip("/")
    if not stripped:
        console.print("[red]A name is required[/red]")
        raise typer.Exit(1)
    parent, _, name = stripped.rpartition("/")
    return f"/{parent}", name


def make_progress() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console
    )


@app.command()
def ls(
    path: str = typer.Argument("/", help="Folder to list"),
    long: bool = typer.Option(False, "-l", "--long", help="Long format with details"),
    search: str = typer.Option(None, "--search", "-s", help="Filter by name"),
):
    """List files and folders."""

    async def list_files():
        async with R2Client(get_endpoint()) as r2:
            entries = await r2.ls(path if path.startswith("/") else f"/{path}")

        if search:
            entries = filter_entries(entries, search)
        entries = sort_entries(entries, folders_first=True)

        if long:
            table = Table()
            table.add_column("Type", style="cyan")
            table.add_column("Size", justify="right")
            table.add_column("Modified")
            table.add_column("Name")

            for entry in entries:
                if entry.is_folder:
                    table.add_row("D", "-", "", f"[blue]{entry.display_name}/[/blue]")
                else:
                    modified = entry.modified.strftime("%Y-%m-%d %H:%M") if entry.modified else ""
                    table.add_row(
                        file_category(entry.content_type or "")[0].upper(),
                        format_file_size(entry.size or 0),
                        modified,
                        entry.display_name
                    )

            console.print(table)
        else:
            for entry in entries:
                if entry.is_folder:
                    console.print(f"[blue]{entry.display_name}/[/blue]")
                else:
                    console.print(entry.display_name)

    run_async(list_files())


@app.command()
def upload(
    file_path: Path = typer.Argument(..., help="Local file to upload", exists=True, dir_okay=False),
    dest: str = typer.Option("/", "--dest", "-d", help="Destination folder path"),
    name: str = typer.Option(None, "--name", "-n", help="Custom file name"),
):
    """Upload a file."""

    async def do_upload():
        token = CancellationToken()
        install_cancel_handler(token)

        async with R2Client(get_endpoint()) as r2:
            with make_progress() as progress:
                task = progress.add_task(f"Uploading {file_path.name}", total=100)

                def on_progress(percentage: float):
                    progress.update(task, completed=percentage)

                result = await r2.upload(
                    file_path,
                    name=name,
                    path=dest if dest.startswith("/") else f"/{dest}",
                    progress_callback=on_progress,
                    cancel_token=token
                )

        console.print(f"[green]Uploaded:[/green] {result.key}")
        console.print(f"Size: {result.size:,} bytes ({result.protocol.value}, {result.parts} parts)")

    run_async(do_upload())


@app.command("upload-dir")
def upload_dir(
    dir_path: Path = typer.Argument(..., help="Local folder to upload", exists=True, file_okay=False),
    dest: str = typer.Option("/", "--dest", "-d", help="Destination folder path"),
):
    """Upload a folder with everything inside it."""

    async def do_upload():
        token = CancellationToken()
        install_cancel_handler(token)

        async with R2Client(get_endpoint()) as r2:
            with make_progress() as progress:
                tasks = {}

                def on_progress(key: str, percentage: float):
                    if key not in tasks:
                        tasks[key] = progress.add_task(f"Uploading {key}", total=100)
                    progress.update(tasks[key], completed=percentage)

                result = await r2.upload_folder(
                    dir_path,
                    path=dest if dest.startswith("/") else f"/{dest}",
                    progress_callback=on_progress,
                    cancel_token=token
                )

        console.print(
            f"[green]{len(result.uploaded)} files, {len(result.created_folders)} folders uploaded[/green]"
        )
        for failure in result.failures:
            console.print(f"[red]Failed: {failure.path}: {failure.error}[/red]")
        for skipped in result.skipped:
            console.print(f"[yellow]Skipped: {skipped}[/yellow]")
        if not result.ok:
            raise typer.Exit(1)

    run_async(do_upload())


@app.command()
def mkdir(
    path: str = typer.Argument(..., help="Folder path to create"),
):
    """Create a folder."""
    parent, name = split_remote(path)

    async def do_mkdir():
        async with R2Client(get_endpoint()) as r2:
            key = await r2.mkdir(name, path=parent)
        console.print(f"[green]Created folder:[/green] {key}")

    run_async(do_mkdir())


@app.command()
def touch(
    path: str = typer.Argument(..., help="File path to create"),
):
    """Create an empty file."""
    parent, name = split_remote(path)

    async def do_touch():
        async with R2Client(get_endpoint()) as r2:
            key = await r2.touch(name, path=parent)
        console.print(f"[green]Created file:[/green] {key}")

    run_async(do_touch())


@app.command()
def rm(
    key: str = typer.Argument(..., help="Object key to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete an object."""
    key = key.lstrip("/")
    if not yes and not typer.confirm(f"Delete {key}?"):
        raise typer.Exit(0)

    async def do_delete():
        async with R2Client(get_endpoint()) as r2:
            await r2.delete(key)
        console.print(f"[green]Deleted:[/green] {key}")

    run_async(do_delete())


@app.command()
def download(
    key: str = typer.Argument(..., help="Object key"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path"),
):
    """Download an object."""
    key = key.lstrip("/")

    async def do_download():
        async with R2Client(get_endpoint()) as r2:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console
            ) as progress:
                task = progress.add_task(f"Downloading {key}")

                def on_progress(written: int):
                    progress.update(task, description=f"Downloading {key} ({format_file_size(written)})")

                path = await r2.download(key, output, progress_callback=on_progress)

        console.print(f"[green]Downloaded:[/green] {path}")

    run_async(do_download())


@app.command()
def url(
    key: str = typer.Argument(..., help="Object key"),
):
    """Print the public URL of an object."""
    endpoint = get_endpoint()
    public = endpoint.public_url(key.lstrip("/"))
    if not public:
        console.print("[red]No custom domain configured[/red]")
        raise typer.Exit(1)
    console.print(public)


if __name__ == "__main__":
    app()
