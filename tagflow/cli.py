"""
CLI interface for tag lists.

Usage:
    tagflow create Projects/Proj.md alpha
    tagflow sync Projects/Proj.md
    tagflow watch Projects/Proj.md
"""

import json
import logging
import os
import time
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from .app import TagFlow
from .config import load_or_create_config, resolve_vault
from .events import Tick, ViewChanged
from .logging_config import configure_quiet_mode, enable_debug_mode
from .picker import ListPicker
from .protocol import Picker
from .regions import line_offset
from .types import ListDeclaration
from .vault import FileVault, VaultWatcher

logger = logging.getLogger(__name__)


# Configure quiet mode by default
# Set TAGFLOW_VERBOSE=1 to enable debug mode via environment
if os.environ.get("TAGFLOW_VERBOSE") == "1":
    enable_debug_mode()
else:
    configure_quiet_mode(quiet=True)


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        print(f"tagflow {version('tagflow')}")
        raise typer.Exit()


def _verbose_callback(value: bool):
    if value:
        enable_debug_mode()


# Global state for CLI options
_vault_override: Optional[Path] = None
_json_output = False


def _vault_callback(value: Optional[Path]):
    global _vault_override
    if value is not None:
        _vault_override = value


def _json_callback(value: bool):
    global _json_output
    _json_output = value


app = typer.Typer(
    name="tagflow",
    help="Backlink lists by tag, kept in sync inside your notes.",
    no_args_is_help=True,
    rich_markup_mode=None,
)


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Enable debug-level logging to stderr",
        callback=_verbose_callback,
        is_eager=True,
    )] = False,
    output_json: Annotated[bool, typer.Option(
        "--json", "-j",
        help="Output as JSON",
        callback=_json_callback,
        is_eager=True,
    )] = False,
    version: Annotated[Optional[bool], typer.Option(
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    )] = None,
    vault: Annotated[Optional[Path], typer.Option(
        "--vault", "-V",
        envvar="TAGFLOW_VAULT",
        help="Path to the vault directory",
        callback=_vault_callback,
        is_eager=True,
    )] = None,
):
    """Backlink lists by tag, kept in sync inside your notes."""


def _get_tagflow() -> TagFlow:
    """Open the engine for the selected vault, exiting on bad config."""
    vault = resolve_vault(_vault_override)
    if not vault.is_dir():
        typer.echo(f"Error: vault not found: {vault}", err=True)
        raise typer.Exit(1)
    try:
        tf = TagFlow(vault)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    tf.open()
    return tf


def _note_arg(tf: TagFlow, note: str) -> str:
    """Resolve a note argument, exiting if it isn't in the vault."""
    storage = tf.storage
    path = storage.note_path(note) if isinstance(storage, FileVault) else note
    if not storage.exists(path):
        typer.echo(f"Error: note not found: {note}", err=True)
        raise typer.Exit(1)
    return path


def _print_sync(path: str, result) -> None:
    if result is None:
        return
    if _json_output:
        typer.echo(json.dumps({
            "note": path,
            "written": [d.to_dict() for d in result.written],
            "retired": [d.to_dict() for d in result.retired],
            "skipped": [d.to_dict() for d in result.skipped],
        }))
        return
    typer.echo(
        f"{path}: {len(result.written)} updated, "
        f"{len(result.retired)} retired, {len(result.skipped)} skipped",
        err=True,
    )


@app.command()
def init():
    """Write a default configuration into the vault."""
    vault = resolve_vault(_vault_override)
    config = load_or_create_config(vault)
    typer.echo(str(config.config_path))


@app.command()
def tags(
    cached: Annotated[bool, typer.Option(
        "--cached",
        help="Read tags from the metadata cache instead of the index",
    )] = False,
):
    """List every tag in the vault (without '#')."""
    tf = _get_tagflow()
    try:
        if cached and isinstance(tf.storage, FileVault):
            seen: dict[str, None] = {}
            for path in tf.storage.list_notes():
                meta = tf.storage.metadata(path)
                if meta:
                    for tag in meta.tags:
                        seen.setdefault(tag.lstrip("#"), None)
            values = list(seen)
        else:
            values = tf.all_tags()
        if _json_output:
            typer.echo(json.dumps(values))
        elif not values:
            typer.echo("No tags found.", err=True)
        else:
            for value in values:
                typer.echo(value)
    finally:
        tf.close()


@app.command("lists")
def lists_cmd(
    note: Annotated[Optional[str], typer.Argument(help="Only lists hosted by this note")] = None,
):
    """Show registered tag lists."""
    tf = _get_tagflow()
    try:
        path = _note_arg(tf, note) if note else None
        decls = tf.lists_for(path)
        if _json_output:
            typer.echo(json.dumps([d.to_dict() for d in decls]))
            return
        if not decls:
            typer.echo("No lists.", err=True)
        for decl in decls:
            typer.echo(f"{decl.note_path}\t{decl.label()}")
    finally:
        tf.close()


@app.command()
def create(
    note: Annotated[str, typer.Argument(help="Note to host the list")],
    tag: Annotated[Optional[str], typer.Argument(help="Tag to list (picker if omitted)")] = None,
    line: Annotated[Optional[int], typer.Option(
        "--line", "-l",
        help="Insert before this line (default: end of note)",
    )] = None,
):
    """Attach a tag list to a note and fill it."""
    tf = _get_tagflow()
    try:
        path = _note_arg(tf, note)
        offset = None
        if line is not None:
            offset = line_offset(tf.storage.read(path), line)

        if tag is None:
            all_tags = tf.all_tags()
            if not all_tags:
                typer.echo("No tags available to select.", err=True)
                raise typer.Exit(1)
            chosen: list[ListDeclaration] = []
            picker: Picker[str] = ListPicker(
                items=all_tags,
                label=lambda t: t,
                on_choose=lambda t: chosen.append(tf.create_list(path, t, offset)),
            )
            if picker.prompt() is None:
                typer.echo("No tag selected.", err=True)
                raise typer.Exit(1)
            decl = chosen[0]
        else:
            decl = tf.create_list(path, tag, offset)

        typer.echo(decl.label())
        _print_sync(path, tf.dispatch(ViewChanged(path)))
    finally:
        tf.close()


@app.command("from-title")
def from_title(
    note: Annotated[str, typer.Argument(help="Note to host the list")],
    title: Annotated[str, typer.Argument(help="Title used as the tag")],
):
    """Attach a tag list named after a title."""
    tf = _get_tagflow()
    try:
        path = _note_arg(tf, note)
        try:
            decl = tf.create_list_from_title(path, title)
        except ValueError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1)
        typer.echo(decl.label())
        _print_sync(path, tf.dispatch(ViewChanged(path)))
    finally:
        tf.close()


@app.command()
def delete(
    note: Annotated[str, typer.Argument(help="Note hosting the list")],
    query: Annotated[str, typer.Option(
        "--query", "-q",
        help="Fuzzy filter on '#tag (ID: id)'",
    )] = "",
):
    """Delete one of a note's tag lists."""
    tf = _get_tagflow()
    try:
        path = _note_arg(tf, note)
        decls = tf.lists_for(path)
        if not decls:
            typer.echo(f"No lists in {path}.", err=True)
            raise typer.Exit(1)
        picker: Picker[ListDeclaration] = ListPicker(items=decls, label=ListDeclaration.label, on_choose=tf.delete_list)
        selected = picker.prompt(query)
        if selected is None:
            typer.echo("No list selected.", err=True)
            raise typer.Exit(1)
        typer.echo(f"Deleted {selected.label()}")
    finally:
        tf.close()


@app.command()
def sync(
    note: Annotated[str, typer.Argument(help="Note whose lists to update")],
):
    """Update the tag lists of a note."""
    tf = _get_tagflow()
    try:
        path = _note_arg(tf, note)
        _print_sync(path, tf.dispatch(ViewChanged(path)))
    finally:
        tf.close()


def _watch_dispatch(tf: TagFlow, event) -> None:
    """Dispatch one watched event; a failed write is retried on the next trigger."""
    try:
        result = tf.dispatch(event)
    except OSError as e:
        logger.warning("Sync after %s failed: %s", event, e)
        typer.echo(f"Error: {e}", err=True)
        return
    _print_sync(tf.state.active_note or "", result)


@app.command()
def watch(
    note: Annotated[Optional[str], typer.Argument(help="Note in view")] = None,
):
    """Keep a note's lists in sync while the vault changes. Ctrl-C to stop."""
    tf = _get_tagflow()
    try:
        if not isinstance(tf.storage, FileVault):
            typer.echo("Error: watch needs a file vault", err=True)
            raise typer.Exit(1)
        if note:
            path = _note_arg(tf, note)
            _print_sync(path, tf.dispatch(ViewChanged(path)))
        with VaultWatcher(tf.storage) as watcher:
            typer.echo(f"Watching {tf.config.vault}", err=True)
            last_tick = time.monotonic()
            while True:
                time.sleep(tf.config.poll_interval)
                events = watcher.poll()
                if time.monotonic() - last_tick >= tf.config.resync_interval:
                    last_tick = time.monotonic()
                    events.append(Tick())
                for event in events:
                    _watch_dispatch(tf, event)
    except KeyboardInterrupt:
        typer.echo("Stopped.", err=True)
    finally:
        tf.close()


def main():
    try:
        app()
    except SystemExit:
        raise  # Let typer handle exit codes
    except KeyboardInterrupt:
        raise SystemExit(130)
    except Exception as e:
        # Log full traceback to file, show clean message to user
        from .errors import log_exception
        log_path = log_exception(e, context="tagflow CLI", vault=_vault_override)
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
