import json

import httpx
import pytest

from connectors.folder_connector import FolderConnector, FolderSession, folder_id_of


class Recorder:
    """MockTransport handler that records requests and replays canned responses."""

    def __init__(self, responses=None):
        self.requests = []
        self.responses = responses or {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        status, body = self.responses.get(key, (200, {}))
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def body(self, index=-1):
        return json.loads(self.requests[index].content)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def connector(recorder):
    session = FolderSession("http://backend.test/", token="s3cret", transport=httpx.MockTransport(recorder))
    return FolderConnector(session)


@pytest.mark.asyncio
async def test_session_headers(connector, recorder):
    await connector.get_hierarchical_structure()
    request = recorder.requests[0]
    assert request.url == "http://backend.test/api/folders/hierarchical-structure"
    assert request.headers["Authorization"] == "Bearer s3cret"


@pytest.mark.asyncio
async def test_no_token_no_authorization_header(recorder):
    session = FolderSession("http://backend.test", transport=httpx.MockTransport(recorder))
    await FolderConnector(session).get_subfolders("a1")
    assert "Authorization" not in recorder.requests[0].headers
    assert recorder.requests[0].url.path == "/api/folders/a1/subfolders"


@pytest.mark.asyncio
async def test_create_folder(connector, recorder):
    recorder.responses[("POST", "/api/folders/crear")] = (201, {"_id": "n1", "name": "Docs"})
    folder = await connector.create_folder("Docs", "transporte_escolar", "p1")
    assert recorder.body() == {"name": "Docs", "category": "transporte_escolar", "parentFolder": "p1"}
    assert folder.name == "Docs"
    assert folder_id_of(folder) == "n1"


@pytest.mark.asyncio
async def test_create_top_level_folder_sends_null_parent(connector, recorder):
    recorder.responses[("POST", "/api/folders/crear")] = (201, {"carpeta": {"_id": "n2", "name": "Top"}})
    folder = await connector.create_folder("Top", "profesional_independiente")
    assert recorder.body()["parentFolder"] is None
    assert folder_id_of(folder) == "n2"


@pytest.mark.asyncio
async def test_update_folder(connector, recorder):
    recorder.responses[("PUT", "/api/folders/a1")] = (200, {"folder": {"id": 5, "name": "New"}})
    folder = await connector.update_folder("a1", "New")
    assert recorder.body() == {"name": "New"}
    assert folder_id_of(folder) == "5"

    await connector.update_folder("a1", "New", description="")
    assert recorder.body() == {"name": "New", "descripcion": ""}


@pytest.mark.asyncio
async def test_delete_folder(connector, recorder):
    recorder.responses[("DELETE", "/api/folders/a1")] = (204, None)
    assert await connector.delete_folder("a1") is None
    assert recorder.requests[0].method == "DELETE"


@pytest.mark.asyncio
async def test_create_nested_folder(connector, recorder):
    payload = {"name": "Root", "category": "profesional_independiente", "description": "",
               "subfolders": [{"name": "Child", "category": "profesional_independiente", "subfolders": []}]}
    recorder.responses[("POST", "/api/folders/create-nested")] = (201, {"_id": "r1", "name": "Root"})
    created = await connector.create_nested_folder(payload)
    assert recorder.body() == payload
    assert created["_id"] == "r1"


@pytest.mark.asyncio
async def test_list_and_get(connector, recorder):
    recorder.responses[("GET", "/api/folders/listar")] = (200, {"carpetas": [{"_id": "a", "name": "A"}]})
    recorder.responses[("GET", "/api/folders/a")] = (200, {"_id": "a", "name": "A", "parentFolder": None})
    folders = await connector.list_folders()
    assert [f.name for f in folders] == ["A"]
    folder = await connector.get_folder("a")
    assert folder.parentFolder is None


@pytest.mark.asyncio
async def test_http_errors_propagate(connector, recorder):
    recorder.responses[("PUT", "/api/folders/a1")] = (409, {"detail": "duplicate"})
    with pytest.raises(httpx.HTTPStatusError) as excinfo:
        await connector.update_folder("a1", "Taken")
    assert excinfo.value.response.status_code == 409


@pytest.mark.asyncio
async def test_non_object_record_is_rejected(connector, recorder):
    recorder.responses[("GET", "/api/folders/a1")] = (200, ["not", "an", "object"])
    with pytest.raises(ValueError):
        await connector.get_folder("a1")


@pytest.mark.asyncio
async def test_custom_prefix_and_info(recorder):
    session = FolderSession("http://backend.test", transport=httpx.MockTransport(recorder))
    connector = FolderConnector(session, api_prefix="/v2/carpetas/")
    await connector.get_hierarchical_structure()
    assert recorder.requests[0].url.path == "/v2/carpetas/hierarchical-structure"
    assert connector.info.hostURL == "http://backend.test"
    assert connector.info.authenticated is False


@pytest.mark.asyncio
async def test_session_context_manager(recorder):
    async with FolderSession("http://backend.test", transport=httpx.MockTransport(recorder)) as session:
        assert not session.is_closed
    assert session.is_closed


def test_folder_id_of():
    assert folder_id_of({"_id": 3}) == "3"
    assert folder_id_of({"id": "x"}) == "x"
    assert folder_id_of({"name": "none"}) is None
    assert folder_id_of(None) is None


def test_session_builds_with_default_transport():
    """A plain session needs nothing but the backend URL."""
    session = FolderSession("http://backend.test/")
    assert session.base_URL == "http://backend.test"
    assert session.token is None
    assert not session.is_closed
    assert FolderConnector(session).info.hostURL == "http://backend.test"
