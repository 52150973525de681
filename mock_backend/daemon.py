"""
mock_backend.daemon
-------------------
This module implements a mock folder backend REST API using FastAPI.
Folders are kept in a flat in-memory store, each pointing at its parent
through ``parentFolder``; nested projections are built on request. It
provides endpoints to create (one by one or as a nested tree), list,
update and delete folders. Intended for local development, testing,
and demonstration purposes.
"""
import json
import logging
import socket
from typing import Any

import typer
import uvicorn
from fastapi import APIRouter, FastAPI, HTTPException
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from common.app_setup import setup_logging

logger = logging.getLogger(__name__)


# Pydantic models for request validation
class FolderCreateModel(BaseModel):
    name: str | None = None
    category: str | None = None
    description: str | None = Field(None, validation_alias=AliasChoices("description", "descripcion"))
    parentFolder: str | None = None


class FolderUpdateModel(BaseModel):
    name: str | None = None
    description: str | None = Field(None, validation_alias=AliasChoices("descripcion", "description"))


class NestedFolderModel(BaseModel):
    name: str | None = None
    category: str | None = None
    description: str | None = None
    subfolders: list["NestedFolderModel"] = Field(default_factory=list)


# Stored folder (flat, parent pointer)
class FolderInfoModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    name: str
    category: str = Field(default="profesional_independiente")
    description: str = ""
    parentFolder: str | None = None
    files: list[Any] = Field(default_factory=list)


# In-memory mock folder store
mock_folders: dict[str, FolderInfoModel] = {}

app = FastAPI()
router = APIRouter(prefix="/api/folders")


def reset_store() -> None:
    """Forget every folder (used between tests)."""
    mock_folders.clear()


def generate_folder_id() -> str:
    """Generate a unique folder id: F1, F2, ..."""
    i = 1
    while f"F{i}" in mock_folders:
        i += 1
    return f"F{i}"


def _public(folder: FolderInfoModel) -> dict[str, Any]:
    return folder.model_dump(by_alias=True)


def _children(parent_id: str | None) -> list[FolderInfoModel]:
    return [f for f in mock_folders.values() if f.parentFolder == parent_id]


def _nested(folder: FolderInfoModel) -> dict[str, Any]:
    data = _public(folder)
    data["subcarpetas"] = [_nested(child) for child in _children(folder.id)]
    return data


def _valid_name(name: str | None) -> str:
    if not isinstance(name, str) or not name.strip():
        logger.warning(f"Invalid folder name: {name!r}")
        raise HTTPException(status_code=422, detail="Missing or invalid 'name' field")
    return name.strip()


def _check_sibling_name(name: str, parent_id: str | None, exclude_id: str | None = None) -> None:
    for sibling in _children(parent_id):
        if sibling.id != exclude_id and sibling.name.casefold() == name.casefold():
            logger.warning(f"Duplicate folder name {name!r} under {parent_id!r}")
            raise HTTPException(status_code=409, detail="A folder with this name already exists at this level")


def _store(name: str, category: str | None, description: str | None, parent_id: str | None) -> FolderInfoModel:
    folder = FolderInfoModel(
        id=generate_folder_id(),
        name=name,
        category=category or "profesional_independiente",
        description=description or "",
        parentFolder=parent_id,
    )
    mock_folders[folder.id] = folder
    return folder


def _get_or_404(folder_id: str) -> FolderInfoModel:
    folder = mock_folders.get(folder_id)
    if not folder:
        logger.warning(f"Folder not found: {folder_id}")
        raise HTTPException(status_code=404, detail="Folder not found")
    return folder


def get_server():
    # Helper to get the running server instance
    return getattr(app.state, "uvicorn_server", None)


@app.post("/shutdown")
def shutdown():
    """Shutdown the server gracefully."""
    logger.info("Shutdown requested via /shutdown endpoint.")
    server = get_server()
    if server:
        server.should_exit = True
    return {"message": "Server shutting down"}


@app.get("/status")
def status():
    """Health/status endpoint for the mock folder backend."""
    server = get_server()
    state = "shutting_down" if server and server.should_exit else "ok"
    return {"status": state, "folders": len(mock_folders)}


@router.get("/hierarchical-structure")
def hierarchical_structure():
    """Every top-level folder with its descendants nested under 'subcarpetas'."""
    return {"carpetas": [_nested(root) for root in _children(None)]}


@router.get("/listar")
def list_folders():
    """Flat list of all folders."""
    return [_public(folder) for folder in mock_folders.values()]


@router.post("/crear", status_code=201)
def create_folder(folder: FolderCreateModel):
    name = _valid_name(folder.name)
    if folder.parentFolder is not None:
        _get_or_404(folder.parentFolder)
    _check_sibling_name(name, folder.parentFolder)
    created = _store(name, folder.category, folder.description, folder.parentFolder)
    logger.info(f"Created folder: {created}")
    return _public(created)


@router.post("/create-nested", status_code=201)
def create_nested(tree: NestedFolderModel):
    """Create a folder and all its subfolders. Nothing is stored if any name is invalid."""
    root_name = _valid_name(tree.name)
    _check_sibling_name(root_name, None)

    def validate(children: list[NestedFolderModel]) -> None:
        seen: set[str] = set()
        for child in children:
            key = _valid_name(child.name).casefold()
            if key in seen:
                raise HTTPException(status_code=409, detail=f"Duplicate subfolder name {child.name!r}")
            seen.add(key)
            validate(child.subfolders)

    validate(tree.subfolders)

    def store(node: NestedFolderModel, parent_id: str | None, inherited: str | None) -> FolderInfoModel:
        category = node.category or inherited
        folder = _store(node.name.strip(), category, node.description, parent_id)
        for child in node.subfolders:
            store(child, folder.id, category)
        return folder

    root = store(tree, None, None)
    logger.info(f"Created nested folder tree: {root.name} ({len(mock_folders)} folders stored)")
    return _nested(root)


@router.get("/{folder_id}")
def get_folder(folder_id: str):
    return _public(_get_or_404(folder_id))


@router.get("/{folder_id}/subfolders")
def get_subfolders(folder_id: str):
    """Descendants of a folder, nested under 'subcarpetas'."""
    _get_or_404(folder_id)
    return {"subcarpetas": [_nested(child) for child in _children(folder_id)]}


@router.put("/{folder_id}")
def update_folder(folder_id: str, update: FolderUpdateModel):
    """Rename a folder and/or change its description."""
    folder = _get_or_404(folder_id)
    if update.name is not None:
        name = _valid_name(update.name)
        _check_sibling_name(name, folder.parentFolder, exclude_id=folder_id)
        folder.name = name
    if update.description is not None:
        folder.description = update.description
    logger.debug(f"After update: {folder!r}")
    return _public(folder)


@router.delete("/{folder_id}", status_code=204)
def delete_folder(folder_id: str):
    """Delete a folder. Its children move up to the deleted folder's parent."""
    folder = _get_or_404(folder_id)
    for child in _children(folder_id):
        child.parentFolder = folder.parentFolder
    del mock_folders[folder_id]
    logger.info(f"Deleted folder: {folder_id}")


app.include_router(router)


app_cli = typer.Typer()

@app_cli.command()
def run(port: int = typer.Option(None, help="Port to run the server on (auto if not set)")):
    """Run the FastAPI app using Uvicorn on localhost, reporting the actual port used."""
    setup_logging(app_name="foldertree-mock", daemon=True)
    if port is None or port == 0:
        # Bind to port 0 to get a free port, then close and reuse
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(('127.0.0.1', 0))
            port = s.getsockname()[1]
        logger.info(f"Selected port: {port}")
        print(json.dumps({"event": "port_selected", "port": port}), flush=True)
    else:
        logger.info(f"Using port: {port}")
        print(json.dumps({"event": "port_used", "port": port}), flush=True)
    config = uvicorn.Config(app, host="127.0.0.1", port=port, log_level="info")
    server = uvicorn.Server(config)
    app.state.uvicorn_server = server  # Store server instance for shutdown
    logger.info(f"Starting Uvicorn server on port {port}")
    try:
        server.run()
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt in main thread")
    logger.info("Server stopped")


if __name__ == "__main__":
    app_cli()
