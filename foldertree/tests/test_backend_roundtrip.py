"""Tree core against the in-process mock backend."""

import httpx
import pytest
import pytest_asyncio

from connectors.folder_connector import FolderConnector, FolderSession
from foldertree import (
    CascadeDeleter,
    DeletePolicy,
    FolderCreateSession,
    FolderEditSession,
    HierarchyLoader,
    Reconciler,
    ReconciliationError,
    TreeModel,
    flatten,
)
from mock_backend import daemon


@pytest_asyncio.fixture
async def connector():
    daemon.reset_store()
    session = FolderSession("http://testserver", transport=httpx.ASGITransport(app=daemon.app))
    yield FolderConnector(session)
    await session.aclose()
    daemon.reset_store()


async def load(connector):
    return HierarchyLoader().load(await connector.get_hierarchical_structure())


@pytest.mark.asyncio
async def test_reconcile_then_reload(connector):
    model = TreeModel()
    model.add_folder((), "Docs")
    model.add_folder("0", "2024")
    model.add_folder("0", "2023")
    model.add_folder("0-0", "Q1")

    report = await Reconciler(connector).run(model)
    assert len(report.created) == 4

    reloaded = await load(connector)
    assert reloaded.structure() == model.structure()

    report = await Reconciler(connector).run(reloaded)
    assert report.created == []
    assert len(report.updated) == 4


@pytest.mark.asyncio
async def test_backend_conflict_is_wrapped(connector):
    await connector.create_folder("Docs", "profesional_independiente")
    model = TreeModel()
    model.add_folder((), "docs")
    with pytest.raises(ReconciliationError) as excinfo:
        await Reconciler(connector).run(model)
    assert isinstance(excinfo.value.__cause__, httpx.HTTPStatusError)
    assert "409" in str(excinfo.value)


@pytest.mark.asyncio
async def test_create_edit_and_delete(connector):
    creator = FolderCreateSession(connector, "Clients")
    creator.add_folder((), "Contracts")
    creator.add_folder("0", "2024")
    created = await creator.submit()
    root_id = created["_id"]

    editor = FolderEditSession(connector, await connector.get_folder(root_id))
    await editor.load()
    assert [entry.path for entry in flatten(editor.model)] == ["0", "0-0"]
    editor.add_folder("0-0", "Signed")
    editor.rename_folder("0", "Agreements")
    await editor.submit(description="customer folders")

    folder = await connector.get_folder(root_id)
    assert folder.description == "customer folders"
    assert [n.name for n in (await load(connector)).get_subtree("0").children] == ["Agreements"]

    report = await CascadeDeleter(connector).delete_folder(root_id, DeletePolicy.SUBTREE)
    assert len(report.deleted) == 4
    assert report.deleted[-1] == root_id
    assert (await load(connector)).roots == []
