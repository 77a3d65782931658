"""CLI entry point for college-advisor."""

import asyncio
from pathlib import Path

import click
import uvicorn

from .config import get_database_path
from .export import EXPORT_FORMATS, ExportError, export_messages, save_export
from .storage import MessageStore


@click.group()
def main():
    """College advisor chat service and transcript exporter."""
    pass


@main.command()
@click.option("--port", default=5000, help="Port to serve on.")
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
def serve(port: int, host: str):
    """Start the web API."""
    click.echo(f"Starting college-advisor on http://{host}:{port}")
    uvicorn.run("college_advisor.server:app", host=host, port=port, reload=False)


@main.command()
@click.argument("session_id")
@click.option("--format", "fmt", type=click.Choice(EXPORT_FORMATS), default="txt", help="Export format.")
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    help="Directory to write the transcript into.",
)
def export(session_id: str, fmt: str, output_dir: Path):
    """Export a stored session's transcript to a file."""
    store = MessageStore(get_database_path())
    try:
        messages = store.get_messages_by_session(session_id)
    finally:
        store.close()

    if not messages:
        raise click.ClickException(f"No messages found for session {session_id}")

    try:
        exported = asyncio.run(export_messages(messages, fmt))
        path = save_export(exported, output_dir)
    except ExportError as e:
        raise click.ClickException(str(e))

    click.echo(f"Wrote {len(messages)} messages to {path}")
