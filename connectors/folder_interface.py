from typing import Any, Protocol
from box import Box


class FolderConfig(Box):
    """
    A folder record as exchanged with the backend. Dot-access dict (Box).
    Examples:
        folder = FolderConfig(_id='a1', name='Docs', parentFolder=None)
        print(folder.name)        # Docs
        print(folder['_id'])      # a1
    """


class FolderSessionProtocol(Protocol):
    """Interface Protocol for backend session objects.
    To be subclassed by actual session implementations.
    """
    base_URL: str

    async def request(self, method: str, endpoint: str, **kwargs: Any) -> Any: ...
    async def aclose(self) -> None: ...


class FolderBackend(Protocol):
    """
       Protocol for the folder backend as consumed by the tree core.
       Reconciler needs create_folder/update_folder, cascade deletion needs
       delete_folder, loaders need the read operations.
    """

    async def get_hierarchical_structure(self) -> Any: ...
    async def get_subfolders(self, folder_id: str) -> Any: ...
    async def list_folders(self) -> list[FolderConfig]: ...
    async def get_folder(self, folder_id: str) -> FolderConfig: ...

    async def create_folder(self, name: str, category: str, parent_folder: str | None = None) -> FolderConfig:
        """Create a single folder under ``parent_folder`` (top level if None)."""
        ...

    async def update_folder(self, folder_id: str, name: str, description: str | None = None) -> FolderConfig:
        """Rename a folder. ``description`` is only sent when given."""
        ...

    async def delete_folder(self, folder_id: str) -> None: ...

    async def create_nested_folder(self, payload: dict[str, Any]) -> FolderConfig:
        """Create a brand-new folder tree in one call."""
        ...

    @property
    def info(self) -> Box:
        """
        Returns information about the connector, such as type and backend URL, as a Box.
        """
        ...
