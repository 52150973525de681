import httpx
import pytest

from foldertree.models import Category
from foldertree.tree import TreeModel, TreeNode


def http_error(status: int = 500, method: str = "POST", text: str = "backend exploded") -> httpx.HTTPStatusError:
    request = httpx.Request(method, "http://backend.test/api/folders")
    response = httpx.Response(status, request=request, text=text)
    return httpx.HTTPStatusError(f"{status} error", request=request, response=response)


class FakeBackend:
    """Records every call; fails on the names/ids listed in ``fail_on``."""

    def __init__(self, fail_on=()):
        self.calls = []
        self.fail_on = set(fail_on)
        self.hierarchy = {"carpetas": []}
        self.subfolders = {}
        self._next_id = 0

    def _maybe_fail(self, *keys):
        if any(key in self.fail_on for key in keys):
            raise http_error()

    async def get_hierarchical_structure(self):
        self.calls.append(("hierarchy",))
        if isinstance(self.hierarchy, Exception):
            raise self.hierarchy
        return self.hierarchy

    async def get_subfolders(self, folder_id):
        self.calls.append(("subfolders", folder_id))
        value = self.subfolders.get(folder_id, {"subcarpetas": []})
        if isinstance(value, Exception):
            raise value
        return value

    async def create_folder(self, name, category, parent_folder=None):
        self.calls.append(("create", name, category, parent_folder))
        self._maybe_fail(name)
        self._next_id += 1
        return {"_id": f"N{self._next_id}", "name": name, "category": category, "parentFolder": parent_folder}

    async def update_folder(self, folder_id, name, description=None):
        self.calls.append(("update", folder_id, name))
        self._maybe_fail(folder_id, name)
        return {"_id": folder_id, "name": name}

    async def delete_folder(self, folder_id):
        self.calls.append(("delete", folder_id))
        self._maybe_fail(folder_id)

    async def create_nested_folder(self, payload):
        self.calls.append(("create-nested", payload))
        self._maybe_fail(payload["name"])
        return {"_id": "R1", "name": payload["name"]}

    def kinds(self, kind):
        return [call for call in self.calls if call[0] == kind]


@pytest.fixture(name="http_error")
def http_error_factory():
    return http_error


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def make_backend():
    return FakeBackend


@pytest.fixture
def docs_model():
    """Docs(d1) > [2024(d2) > [Q1(d4)], 2023(d3)] ; Misc (unsaved)"""
    q1 = TreeNode("Q1", backend_id="d4")
    y2024 = TreeNode("2024", backend_id="d2", children=[q1])
    y2023 = TreeNode("2023", backend_id="d3")
    docs = TreeNode("Docs", category=Category.TRANSPORTE_ESCOLAR, backend_id="d1", children=[y2024, y2023])
    misc = TreeNode("Misc")
    return TreeModel([docs, misc])
