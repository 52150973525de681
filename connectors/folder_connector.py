from typing import Any
import uuid
import httpx

from box import Box
from connectors.folder_interface import FolderBackend, FolderConfig, FolderSessionProtocol


##### Sessions #####
class FolderSession(FolderSessionProtocol):
    """
    A session against the folder backend REST API.

    Args:
        host_URL (str): The base URL of the backend.
            Must include scheme (http:// or https://) and optionally port.
            Examples: "http://localhost:8000", "https://folders.example.com"
        token (str | None): Bearer token sent with every request.
        timeout (float): Request timeout in seconds.
        transport (httpx.AsyncBaseTransport | None): Custom transport, used by
            tests to talk to an in-process app or a mock.
    """
    def __init__(self, host_URL: str, token: str | None = None, timeout: float = 15.0,
                 transport: httpx.AsyncBaseTransport | None = None):
        self.base_URL = host_URL.rstrip("/")
        self.token = token
        self.session_id = str(uuid.uuid4())
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(base_url=self.base_URL, headers=headers, timeout=timeout, transport=transport)

    async def request(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        """
        Make an HTTP request to the backend.
        raise_for_status() is called on the response.

        Args:
            method (str): The HTTP method (GET, POST, PUT, DELETE).
            endpoint (str): The API endpoint (path) to call.
            **kwargs: Additional arguments to pass to httpx request.
            example: await session.request("GET", "/api/folders/listar")

        Returns:
            httpx.Response: The HTTP response object.
        """
        url = f"{self.base_URL}/{endpoint.lstrip('/')}"
        response = await self._client.request(method, url, **kwargs)
        response.raise_for_status()
        return response

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "FolderSession":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


##### Connectors #####

class FolderConnector(FolderBackend):
    """ Folder backend connector.
    Uses REST API; every route lives under ``api_prefix``."""

    def __init__(self, session: FolderSession, api_prefix: str = "/api/folders"):
        self.session: FolderSession = session
        self.api_prefix = api_prefix.rstrip("/")
        self.request = self.session.request  # "alias" Now self.request(...) is the same as self.session.request(...)

    def _url(self, route: str) -> str:
        return f"{self.api_prefix}/{route.lstrip('/')}"

    @property
    def info(self) -> Box:
        """ Returns information about the connector,
            such as type and backend URL, as a Box.
        """
        return Box({
            "type": "folder_backend",
            "hostURL": self.session.base_URL,
            "api_prefix": self.api_prefix,
            "authenticated": bool(self.session.token),
        })

    async def get_hierarchical_structure(self) -> Any:
        r = await self.request("GET", self._url("hierarchical-structure"))
        return r.json()

    async def get_subfolders(self, folder_id: str) -> Any:
        r = await self.request("GET", self._url(f"{folder_id}/subfolders"))
        return r.json()

    async def list_folders(self) -> list[FolderConfig]:
        r = await self.request("GET", self._url("listar"))
        data = r.json()
        if isinstance(data, dict):
            data = data.get("carpetas", data.get("folders", []))
        return [FolderConfig(folder) for folder in data]

    async def get_folder(self, folder_id: str) -> FolderConfig:
        r = await self.request("GET", self._url(folder_id))
        return _record(r.json())

    async def create_folder(self, name: str, category: str, parent_folder: str | None = None) -> FolderConfig:
        r = await self.request("POST", self._url("crear"),
                               json={"name": name, "category": category, "parentFolder": parent_folder})
        return _record(r.json())

    async def update_folder(self, folder_id: str, name: str, description: str | None = None) -> FolderConfig:
        payload: dict[str, Any] = {"name": name}
        if description is not None:
            payload["descripcion"] = description
        r = await self.request("PUT", self._url(folder_id), json=payload)
        return _record(r.json())

    async def delete_folder(self, folder_id: str) -> None:
        await self.request("DELETE", self._url(folder_id))

    async def create_nested_folder(self, payload: dict[str, Any]) -> FolderConfig:
        r = await self.request("POST", self._url("create-nested"), json=payload)
        return _record(r.json())


def _record(data: Any) -> FolderConfig:
    """Some routes wrap the folder in ``carpeta``/``folder``; unwrap it."""
    if isinstance(data, dict):
        for key in ("carpeta", "folder"):
            if isinstance(data.get(key), dict):
                return FolderConfig(data[key])
        return FolderConfig(data)
    raise ValueError(f"Expected a folder object from the backend, got {type(data).__name__}")


def folder_id_of(folder: Any) -> str | None:
    """Backend identity of a folder record (``_id`` or ``id``)."""
    value = folder.get("_id", folder.get("id")) if isinstance(folder, dict) else None
    return None if value is None else str(value)
