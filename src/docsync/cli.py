"""CLI entry point for docsync."""

import asyncio
import logging
from collections import Counter
from pathlib import Path

import click
import socketio
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import DEFAULT_CONFIG, load_config
from .errors import ConfigError, DocSyncError

console = Console()


@click.group()
@click.option("--config", "-c", "config_path", default=None, help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output")
@click.pass_context
def cli(ctx, config_path, verbose):
    """docsync - keep a vector index of your documents in sync and answer questions."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


def _get_config(ctx) -> dict:
    try:
        config = load_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        console.print(f"[red]{e}[/]")
        ctx.exit(1)
    level = "DEBUG" if ctx.obj.get("verbose") else config.get("logging", {}).get("level", "INFO")
    _setup_logging(level)
    return config


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def _get_context(ctx):
    from .context import build_context
    return build_context(_get_config(ctx))


@cli.command()
@click.option("--path", default=".", help="Directory to write config.yaml into")
@click.option("--documents", "documents_dir", default=None, help="Directory holding your documents")
def init(path, documents_dir):
    """Write a starter configuration file."""
    import yaml

    target = Path(path).expanduser().resolve()
    target.mkdir(parents=True, exist_ok=True)
    config_file = target / "config.yaml"
    if config_file.exists():
        console.print(f"[yellow]Config already exists: {config_file}[/]")
        return

    cfg = {k: v for k, v in DEFAULT_CONFIG.items()}
    cfg["documents"] = dict(DEFAULT_CONFIG["documents"])
    if documents_dir:
        cfg["documents"]["file_path"] = str(Path(documents_dir).expanduser().resolve())

    header = (
        "# Claude API key for answering questions (or set ANTHROPIC_API_KEY env var)\n"
        "# claude_api_key: sk-ant-your-key-here\n\n"
        "# Either list glob patterns, e.g.\n"
        "# file_patterns: [\"docs/**/*.md\", \"notes/*.txt\"]\n"
        "# or point documents.file_path at a directory.\n\n"
    )
    config_file.write_text(header + yaml.dump(cfg, default_flow_style=False))
    console.print(f"[bold green]✓ Created config: {config_file}[/]")


@cli.command()
@click.option("--interval", type=float, default=None, help="Seconds between update passes")
@click.option("--gateway/--no-gateway", default=True, help="Connect to the remote assistant")
@click.pass_context
def serve(ctx, interval, gateway):
    """Load or build the index, keep it updated and answer remote questions."""
    app = _get_context(ctx)
    try:
        asyncio.run(_serve(app, interval, gateway))
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped.[/]")
    except DocSyncError as e:
        console.print(f"[red]✗ Startup failed: {e}[/]")
        ctx.exit(1)
    except socketio.exceptions.ConnectionError as e:
        console.print(f"[red]✗ Could not connect to the remote assistant: {e}[/]")
        ctx.exit(1)


async def _serve(app, interval, gateway):
    from .gateway import QueryGateway
    from .sync.scheduler import CyclicUpdater

    console.print("[bold]Starting local document source[/]")
    await app.engine.load_or_build_up()

    sync_cfg = app.config.get("sync", {})
    updater = CyclicUpdater(
        app.engine,
        interval=interval or sync_cfg.get("interval_seconds", 60),
        allow_overlap=sync_cfg.get("allow_overlap", False),
    )
    updater.start()
    try:
        if gateway:
            server_cfg = app.config.get("server", {})
            await QueryGateway(
                app.engine,
                url=server_cfg.get("url"),
                n_chunks=server_cfg.get("n_chunks", 4),
            ).run()
        else:
            console.print("[dim]Gateway disabled, only keeping the index in sync (Ctrl+C to stop)[/]")
            await asyncio.Event().wait()
    finally:
        await updater.stop()


@cli.command()
@click.pass_context
def build(ctx):
    """Rebuild the index from scratch."""
    app = _get_context(ctx)

    async def _build():
        await app.engine.build_up_from_scratch()
        await app.engine.save()
        return app.index_store.count(app.engine.store)

    try:
        count = asyncio.run(_build())
    except DocSyncError as e:
        console.print(f"[red]✗ Build failed: {e}[/]")
        ctx.exit(1)
    console.print(f"[green]✓ Indexed {count} chunk(s)[/]")


@cli.command()
@click.pass_context
def update(ctx):
    """Run a single update pass against the saved index."""
    app = _get_context(ctx)
    if not app.index_store.exists():
        console.print("[yellow]No index yet. Run 'docsync build' first.[/]")
        return

    async def _update():
        await app.engine.load()
        return await app.engine.update()

    try:
        result = asyncio.run(_update())
    except DocSyncError as e:
        console.print(f"[red]✗ Update failed: {e}[/]")
        ctx.exit(1)

    console.print(f"[green]✓ Scanned {result.files_scanned} file(s)[/]")
    console.print(f"  Changed or new: {result.files_stale}")
    console.print(f"  Chunks added: {result.chunks_added}")
    if result.sources_removed:
        console.print(f"  Superseded files cleared: {result.sources_removed}")
    if result.files_failed:
        console.print(f"  [red]Failed: {result.files_failed}[/]")


@cli.command()
@click.argument("question")
@click.option("--n", "-n", default=None, type=int, help="Number of context chunks to retrieve")
@click.pass_context
def ask(ctx, question, n):
    """Ask a question against the local index."""
    from rich.markdown import Markdown
    from rich.panel import Panel

    from .qa import ask_question

    app = _get_context(ctx)
    if not app.index_store.exists():
        console.print("[yellow]No index yet. Run 'docsync build' first.[/]")
        return
    n_chunks = n or app.config.get("server", {}).get("n_chunks", 4)

    async def _ask():
        await app.engine.load()
        return await app.gate.run_exclusive(
            asyncio.to_thread, ask_question, question, app.engine.store, app.index_store, app.config, n_chunks
        )

    try:
        result = asyncio.run(_ask())
    except (ValueError, DocSyncError) as e:
        console.print(f"[red]{e}[/]")
        return

    console.print(Panel(Markdown(result["text"]), title="Answer", border_style="green"))
    if result["sources"]:
        console.print("\n[bold]Sources:[/]")
        for source in result["sources"]:
            console.print(f"  • {source}")


@cli.command()
@click.pass_context
def stats(ctx):
    """Show index statistics."""
    app = _get_context(ctx)
    console.print(f"\n[bold]Index: {app.config['index_path']}[/]")
    if not app.index_store.exists():
        console.print("  [yellow]Not built yet[/]")
        return

    store = app.index_store.load()
    chunks = app.index_store.list_documents(store)
    per_source = Counter(c.source for c in chunks)
    console.print(f"  Indexed chunks: {len(chunks)}")
    console.print(f"  Indexed files: {len(per_source)}")

    table = Table(title="Indexed files")
    table.add_column("Source", style="cyan")
    table.add_column("Chunks", justify="right", style="green")
    for source, count in sorted(per_source.items()):
        table.add_row(source, str(count))
    console.print(table)


if __name__ == "__main__":
    cli()
