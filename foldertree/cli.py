"""
This file is the entry point for the 'foldertree' command-line tool.
Run 'foldertree' in your shell to inspect and edit folder trees on a backend.
"""
import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, TypeVar

import httpx
import typer
from rich.console import Console

from common.app_setup import print_and_log, print_error, setup_logging
from common.config import Settings, load_settings
from connectors.connections_manager import get_connector
from connectors.folder_connector import FolderConnector, folder_id_of

from .deletion import CascadeDeleter, DeletePolicy
from .errors import FolderTreeError
from .loader import HierarchyLoader
from .models import Category, coerce_category, coerce_tree_description
from .session import FolderCreateSession, FolderEditSession
from .view import TreeView

T = TypeVar("T")

app = typer.Typer(add_completion=False, help="Inspect and edit nested folder trees on the folder backend.")

# replaced in tests to talk to an in-process backend
make_connector: Callable[[Settings], FolderConnector] = get_connector


@app.callback()
def main(ctx: typer.Context,
         config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML/JSON settings file"),
         verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug messages")):
    """Load settings and set up logging for every command."""
    try:
        settings = load_settings(config)
    except (OSError, ValueError) as e:
        print_error(f"Cannot load settings: {e}")
        raise typer.Exit(1)
    level = logging.DEBUG if verbose else settings.log_level
    setup_logging(app_name="foldertree", loglevel=level, logfile=settings.logfile)
    ctx.obj = settings


def _call(ctx: typer.Context, action: Callable[[FolderConnector], Awaitable[T]]) -> T:
    """Run ``action`` against a fresh connector; report failures and exit with 1."""
    settings: Settings = ctx.obj

    async def runner() -> T:
        connector = make_connector(settings)
        try:
            return await action(connector)
        finally:
            await connector.session.aclose()

    try:
        return asyncio.run(runner())
    except (FolderTreeError, ValueError) as e:
        print_error(str(e))
    except httpx.HTTPStatusError as e:
        print_error(f"Backend error: {e.response.status_code} {e.response.text}")
    except httpx.HTTPError as e:
        print_error(f"Error contacting backend at {settings.backend_url}: {e}")
    raise typer.Exit(1)


def _loader(ctx: typer.Context) -> HierarchyLoader:
    settings: Settings = ctx.obj
    return HierarchyLoader(coerce_category(settings.default_category))


async def _edit_session(ctx: typer.Context, connector: FolderConnector, folder_id: str) -> FolderEditSession:
    folder = await connector.get_folder(folder_id)
    session = FolderEditSession(connector, folder, loader=_loader(ctx))
    await session.load()
    for warning in session.warnings:
        print_error(warning)
    return session


@app.command()
def tree(ctx: typer.Context,
         collapsed: bool = typer.Option(False, help="Only show top-level folders")):
    """Show the whole folder hierarchy."""
    settings: Settings = ctx.obj
    raw = _call(ctx, lambda connector: connector.get_hierarchical_structure())
    model, warning = _loader(ctx).load_or_empty(raw)
    if warning:
        print_error(warning)
    view = TreeView(title=settings.backend_url)
    if not collapsed:
        view.expand_all(model)
    Console().print(view.render(model))


@app.command()
def flatten(ctx: typer.Context, folder_id: str = typer.Argument(..., help="Folder whose subfolders are listed")):
    """List every subfolder of a folder with its depth and path address."""
    async def action(connector: FolderConnector):
        deleter = CascadeDeleter(connector, _loader(ctx))
        return await deleter.load_subfolders(folder_id), deleter.warnings

    flat, warnings = _call(ctx, action)
    for warning in warnings:
        print_error(warning)
    if not flat:
        print_and_log(f"Folder {folder_id} has no subfolders.")
        return
    for entry in flat:
        print_and_log(f"{'  ' * entry.depth}{entry.path:<8} {entry.name}  (id: {entry.backend_id})")
    print_and_log(f"{len(flat)} subfolders.")


@app.command()
def delete(ctx: typer.Context,
           folder_id: str = typer.Argument(..., help="Folder to delete"),
           policy: DeletePolicy = typer.Option(DeletePolicy.SUBTREE, case_sensitive=False,
                                               help="subtree: folder and all subfolders; target: only the folder; "
                                                    "selected: only the subfolders given with --select"),
           select: Optional[List[str]] = typer.Option(None, "--select", help="Subfolder id (repeatable)"),
           yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation")):
    """Delete a folder and/or its subfolders. This cannot be undone."""
    if not yes:
        typer.confirm(f"Delete folder {folder_id} (policy: {policy.value})?", abort=True)

    def action(connector: FolderConnector):
        return CascadeDeleter(connector, _loader(ctx)).delete_folder(folder_id, policy, select or [])

    report = _call(ctx, action)
    print_and_log(f"Deleted {len(report.deleted)} folders: {', '.join(report.deleted)}")


@app.command()
def create(ctx: typer.Context, file: Path = typer.Argument(..., exists=True, dir_okay=False,
                                                          help="YAML/JSON description of the new folder tree")):
    """Create a new folder tree in one call from a description file."""
    try:
        description = coerce_tree_description(file)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    async def action(connector: FolderConnector):
        session = FolderCreateSession.from_description(connector, description)
        return await session.submit()

    created = _call(ctx, action)
    print_and_log(f"Created folder {description.name!r} with id {folder_id_of(created)}.")


@app.command()
def add(ctx: typer.Context,
        folder_id: str = typer.Argument(..., help="Folder being edited"),
        name: str = typer.Argument(..., help="Name of the new subfolder"),
        under: str = typer.Option("", help="Path address of the parent subfolder (e.g. 0-1); empty for a direct child"),
        category: Optional[Category] = typer.Option(None, case_sensitive=False,
                                                    help="Category of the new subfolder (default: the parent's)")):
    """Add a subfolder anywhere below a folder and save."""

    async def action(connector: FolderConnector):
        session = await _edit_session(ctx, connector, folder_id)
        session.add_folder(under, name, category)
        return await session.submit()

    report = _call(ctx, action)
    print_and_log(f"Saved: {len(report.created)} created, {len(report.updated)} updated.")


@app.command()
def rename(ctx: typer.Context,
           folder_id: str = typer.Argument(..., help="Folder being edited"),
           path: str = typer.Argument(..., help="Path address of the subfolder to rename (e.g. 0-1)"),
           new_name: str = typer.Argument(..., help="New name")):
    """Rename a subfolder of a folder and save."""

    async def action(connector: FolderConnector):
        session = await _edit_session(ctx, connector, folder_id)
        session.rename_folder(path, new_name)
        return await session.submit()

    report = _call(ctx, action)
    print_and_log(f"Saved: {len(report.created)} created, {len(report.updated)} updated.")


if __name__ == "__main__":
    app()
