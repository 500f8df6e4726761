"""Main CLI entry point for remotecache.

Provides command-line access to a cache directory: fetch through the cache,
inspect entries, and purge or clear blobs.
"""

import os
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from remotecache.cache import RemoteFileCache
from remotecache.cache.config import get_global_config
from remotecache.errors import FetchError

# Global console for Rich output
console = Console()


def find_cache_dir(ctx_cache_dir: Optional[str] = None) -> Path:
    """Find the cache directory from multiple sources.

    Priority:
    1. Explicit --cache-dir/-C flag
    2. REMOTECACHE_DIR environment variable
    3. Global configuration (config file or default data/cache)

    Args:
        ctx_cache_dir: Cache directory from CLI context

    Returns:
        Path to cache directory
    """
    if ctx_cache_dir:
        return Path(ctx_cache_dir)

    env_dir = os.environ.get("REMOTECACHE_DIR")
    if env_dir:
        return Path(env_dir)

    return get_global_config().cache_dir


def open_cache(ctx) -> RemoteFileCache:
    """Build the cache described by the CLI context."""
    return RemoteFileCache(
        cache_dir=str(find_cache_dir(ctx.obj.get("cache_dir"))),
        default_ttl=ctx.obj.get("ttl"),
        config=get_global_config(),
    )


def _format_age(seconds: float) -> str:
    seconds = int(seconds)
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m"
    if seconds < 86400:
        return f"{seconds // 3600}h"
    return f"{seconds // 86400}d"


@click.group()
@click.option(
    "--cache-dir",
    "-C",
    type=click.Path(file_okay=False),
    help="Cache directory (default: REMOTECACHE_DIR env var or data/cache)",
)
@click.option("--ttl", type=click.IntRange(min=0), help="Default TTL in seconds")
@click.pass_context
def cli(ctx, cache_dir, ttl):
    """remotecache CLI - Fetch remote files through a local disk cache.

    Use --cache-dir/-C to choose the cache, or set REMOTECACHE_DIR.
    """
    ctx.ensure_object(dict)
    ctx.obj["cache_dir"] = cache_dir
    ctx.obj["ttl"] = ttl


@cli.command("get")
@click.argument("url")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True),
    help="Write content to a file instead of stdout",
)
@click.pass_context
def get_cmd(ctx, url, output):
    """Get a resource, fetching it only when the cached copy is stale.

    Example:
        remotecache get https://example.com/feed.xml -o feed.xml
    """
    try:
        cache = open_cache(ctx)
        content = cache.get(url)
        if content is None:
            console.print(f"[red]✗[/red] Nothing cached for {url}", style="red")
            sys.exit(1)

        if output:
            Path(output).write_bytes(content)
            console.print(f"[green]✓[/green] Wrote {len(content)} bytes to {output}")
        else:
            stream = click.get_binary_stream("stdout")
            stream.write(content)
            stream.flush()

    except FetchError as e:
        console.print(f"[red]✗[/red] Fetch failed: {e}", style="red")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)


@cli.command("has")
@click.argument("url")
@click.pass_context
def has_cmd(ctx, url):
    """Check whether a resource has a cached blob (exit 1 if not).

    Example:
        remotecache has https://example.com/feed.xml
    """
    try:
        cache = open_cache(ctx)
        if cache.has(url):
            console.print(f"[green]✓[/green] Cached: {url}")
        else:
            console.print(f"[yellow]Not cached:[/yellow] {url}")
            sys.exit(1)
    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)


@cli.command("delete")
@click.argument("urls", nargs=-1, required=True)
@click.pass_context
def delete_cmd(ctx, urls):
    """Delete cached resources.

    Example:
        remotecache delete https://example.com/a https://example.com/b
    """
    try:
        cache = open_cache(ctx)
        result = cache.delete_multiple(urls)

        for key in result.succeeded:
            console.print(f"[green]✓[/green] Deleted {key}")
        for key in result.failed:
            console.print(f"[yellow]Not cached:[/yellow] {key}")

    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)


@cli.command("clear")
@click.option(
    "--expired-only", is_flag=True, help="Only remove entries that are no longer fresh"
)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def clear_cmd(ctx, expired_only, yes):
    """Remove cached entries.

    Example:
        remotecache clear --expired-only
        remotecache clear -y
    """
    try:
        cache = open_cache(ctx)

        if not yes and not expired_only:
            if not click.confirm(f"Clear all entries in {cache.cache_dir}?"):
                console.print("[yellow]Cancelled[/yellow]")
                return

        result = cache.clear(expired_only=expired_only)
        console.print(f"[green]✓[/green] Cleared {len(result.succeeded)} entries")
        if result.failed:
            console.print(
                f"[yellow]Could not remove {len(result.failed)} entries[/yellow]"
            )
            sys.exit(1)

    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)


@cli.command("purge")
@click.pass_context
def purge_cmd(ctx):
    """Remove every blob older than the default TTL.

    Example:
        remotecache --ttl 3600 purge
    """
    try:
        cache = open_cache(ctx)
        result = cache.purge()

        console.print(
            f"[green]✓[/green] Purged {len(result.removed)} of {result.scanned} files"
        )
        if result.failed:
            console.print(f"[yellow]Could not remove {len(result.failed)} files[/yellow]")
            for path in result.failed[:10]:
                console.print(f"  • {path}")

    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)


@cli.command("list")
@click.pass_context
def list_cmd(ctx):
    """List cached entries.

    Example:
        remotecache -C data/cache list
    """
    try:
        cache = open_cache(ctx)
        statuses = [cache.get_status(entry.entry_id) for entry in cache.entries()]
        statuses = [s for s in statuses if s is not None]

        if not statuses:
            console.print("[yellow]Cache is empty[/yellow]")
            return

        table = Table(title=f"Cache entries ({len(statuses)})")
        table.add_column("Entry", style="cyan", no_wrap=True)
        table.add_column("Size", justify="right", style="green")
        table.add_column("Age", justify="right", style="blue")
        table.add_column("TTL", justify="right", style="magenta")
        table.add_column("Fresh", justify="center")

        for status in sorted(statuses, key=lambda s: s["age_seconds"]):
            table.add_row(
                status["entry_id"],
                str(status["size_bytes"]),
                _format_age(status["age_seconds"]),
                _format_age(status["ttl"]),
                "[green]yes[/green]" if status["fresh"] else "[red]no[/red]",
            )

        console.print(table)

    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)


@cli.command("status")
@click.argument("url")
@click.pass_context
def status_cmd(ctx, url):
    """Show cache status for a resource.

    Example:
        remotecache status https://example.com/feed.xml
    """
    try:
        cache = open_cache(ctx)
        status = cache.get_status(url)

        if status is None:
            console.print(f"[yellow]Not cached:[/yellow] {url}")
            sys.exit(1)

        console.print(f"\n[bold cyan]{url}[/bold cyan]")
        console.print(f"[bold]Entry:[/bold] {status['entry_id']}")
        console.print(f"[bold]Path:[/bold] {status['path']}")
        console.print(f"[bold]Size:[/bold] {status['size_bytes']} bytes")
        console.print(f"[bold]Modified:[/bold] {status['modified_at']}")
        console.print(f"[bold]TTL:[/bold] {status['ttl']}s")
        console.print(f"[bold]Remaining:[/bold] {status['ttl_remaining']}s")
        if status["fresh"]:
            console.print("[bold]Fresh:[/bold] [green]yes[/green]")
        else:
            console.print("[bold]Fresh:[/bold] [red]no[/red]")

    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)


if __name__ == "__main__":
    cli()
