import logging

import httpx
import pytest
from typer.testing import CliRunner

from connectors.folder_connector import FolderConnector, FolderSession
from foldertree import cli
from mock_backend import daemon

runner = CliRunner()

SCHOOL = {
    "name": "School",
    "category": "transporte_escolar",
    "subfolders": [
        {"name": "Buses", "subfolders": [{"name": "Bus 1"}, {"name": "Bus 2"}]},
        {"name": "Routes"},
    ],
}
# ids given by the mock backend: School F1, Buses F2, Bus 1 F3, Bus 2 F4, Routes F5


def in_process_connector(settings):
    session = FolderSession(settings.backend_url, transport=httpx.ASGITransport(app=daemon.app))
    return FolderConnector(session, api_prefix=settings.api_prefix)


@pytest.fixture(autouse=True)
def cli_env(tmp_path, monkeypatch):
    """In-process backend, a throwaway config/log file, and restored logging."""
    config = tmp_path / "config.yaml"
    config.write_text(f"backend_url: http://testserver\nlogfile: {tmp_path / 'log.txt'}\n")
    monkeypatch.setenv("FOLDERTREE_CONFIG", str(config))
    monkeypatch.setattr(cli, "make_connector", in_process_connector)
    root = logging.getLogger()
    level = root.level
    daemon.reset_store()
    yield tmp_path
    for handler in root.handlers[:]:
        if isinstance(handler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    daemon.reset_store()


@pytest.fixture
def school():
    return daemon.create_nested(daemon.NestedFolderModel.model_validate(SCHOOL))


def children_of(folder_id):
    return [f.name for f in daemon.mock_folders.values() if f.parentFolder == folder_id]


def test_help():
    """Test the help command displays usage information."""
    result = runner.invoke(cli.app, ["--help"])
    print(result.output)
    assert result.exit_code == 0
    assert "Usage" in result.output
    for command in ["tree", "flatten", "delete", "create", "add", "rename"]:
        assert command in result.output


def test_tree(school):
    """The whole hierarchy is shown expanded."""
    result = runner.invoke(cli.app, ["tree"])
    print(result.output)
    assert result.exit_code == 0
    for name in ["http://testserver", "School", "Buses", "Bus 1", "Bus 2", "Routes"]:
        assert name in result.output


def test_tree_collapsed(school):
    result = runner.invoke(cli.app, ["tree", "--collapsed"])
    print(result.output)
    assert result.exit_code == 0
    assert "School  [4 subfolders]" in result.output
    assert "Bus 1" not in result.output


def test_tree_empty_backend():
    result = runner.invoke(cli.app, ["tree"])
    assert result.exit_code == 0
    assert "(no folders)" in result.output


def test_flatten(school):
    """Subfolders are listed pre-order with their path address and id."""
    result = runner.invoke(cli.app, ["flatten", "F1"])
    print(result.output)
    assert result.exit_code == 0
    lines = [line.strip() for line in result.output.splitlines()]
    assert lines[0].startswith("0 ") and lines[0].endswith("Buses  (id: F2)")
    assert lines[1].startswith("0-0 ") and lines[1].endswith("Bus 1  (id: F3)")
    assert lines[2].startswith("0-1 ") and lines[2].endswith("Bus 2  (id: F4)")
    assert lines[3].startswith("1 ") and lines[3].endswith("Routes  (id: F5)")
    assert "4 subfolders." in result.output


def test_flatten_keeps_bracketed_names():
    """Folder names are printed verbatim, square brackets included."""
    daemon.create_nested(daemon.NestedFolderModel.model_validate(
        {"name": "Root", "subfolders": [{"name": "[draft] Docs"}, {"name": "[bold]x[/bold]"}]}))
    result = runner.invoke(cli.app, ["flatten", "F1"])
    print(result.output)
    assert result.exit_code == 0
    assert "[draft] Docs  (id: F2)" in result.output
    assert "[bold]x[/bold]  (id: F3)" in result.output


def test_flatten_leaf(school):
    result = runner.invoke(cli.app, ["flatten", "F5"])
    assert result.exit_code == 0
    assert "Folder F5 has no subfolders." in result.output


def test_flatten_unknown_folder():
    """Backend errors are reported and the command exits with 1."""
    result = runner.invoke(cli.app, ["flatten", "F99"])
    print(result.output)
    assert result.exit_code == 1
    assert "Backend error: 404" in result.output


def test_delete_subtree(school):
    result = runner.invoke(cli.app, ["delete", "F2", "--yes"])
    print(result.output)
    assert result.exit_code == 0
    assert "Deleted 3 folders: F4, F3, F2" in result.output
    assert sorted(daemon.mock_folders) == ["F1", "F5"]


def test_delete_selected(school):
    result = runner.invoke(cli.app, ["delete", "F1", "--policy", "selected", "--select", "F3", "--select", "F5", "-y"])
    print(result.output)
    assert result.exit_code == 0
    assert "Deleted 2 folders: F5, F3" in result.output
    assert children_of("F2") == ["Bus 2"]


def test_delete_selected_needs_a_selection(school):
    result = runner.invoke(cli.app, ["delete", "F1", "--policy", "selected", "-y"])
    assert result.exit_code == 1
    assert "Select at least one subfolder" in result.output
    assert len(daemon.mock_folders) == 5


def test_delete_asks_for_confirmation(school):
    result = runner.invoke(cli.app, ["delete", "F1"], input="n\n")
    assert result.exit_code == 1
    assert "Delete folder F1" in result.output
    assert len(daemon.mock_folders) == 5


def test_create(cli_env):
    description = cli_env / "tree.yaml"
    description.write_text("name: Clients\nsubfolders:\n  - name: Contracts\n  - name: Invoices\n")
    result = runner.invoke(cli.app, ["create", str(description)])
    print(result.output)
    assert result.exit_code == 0
    assert "Created folder 'Clients' with id F1." in result.output
    assert children_of("F1") == ["Contracts", "Invoices"]


def test_create_invalid_description(cli_env):
    description = cli_env / "tree.yaml"
    description.write_text("subfolders: []\n")
    result = runner.invoke(cli.app, ["create", str(description)])
    assert result.exit_code == 1
    assert "Invalid folder tree description" in result.output


def test_create_duplicate_siblings(cli_env):
    description = cli_env / "tree.json"
    description.write_text('{"name": "Clients", "subfolders": [{"name": "A"}, {"name": "a"}]}')
    result = runner.invoke(cli.app, ["create", str(description)])
    assert result.exit_code == 1
    assert "already exists at this level" in result.output
    assert daemon.mock_folders == {}


def test_add(school):
    result = runner.invoke(cli.app, ["add", "F1", "Trucks"])
    print(result.output)
    assert result.exit_code == 0
    assert "Saved: 1 created, 5 updated." in result.output
    assert children_of("F1") == ["Buses", "Routes", "Trucks"]
    trucks = next(f for f in daemon.mock_folders.values() if f.name == "Trucks")
    assert trucks.category == "transporte_escolar"


def test_add_under_path_with_category(school):
    result = runner.invoke(cli.app, ["add", "F1", "Bus 3", "--under", "0", "--category", "encargador_seguros"])
    print(result.output)
    assert result.exit_code == 0
    assert children_of("F2") == ["Bus 1", "Bus 2", "Bus 3"]
    bus3 = next(f for f in daemon.mock_folders.values() if f.name == "Bus 3")
    assert bus3.category == "encargador_seguros"


def test_add_duplicate(school):
    result = runner.invoke(cli.app, ["add", "F1", "routes"])
    assert result.exit_code == 1
    assert "already exists at this level" in result.output
    assert len(daemon.mock_folders) == 5


def test_add_under_stale_path(school):
    result = runner.invoke(cli.app, ["add", "F1", "Nope", "--under", "3-1"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_rename(school):
    result = runner.invoke(cli.app, ["rename", "F1", "0-1", "Minibus"])
    print(result.output)
    assert result.exit_code == 0
    assert "Saved: 0 created, 5 updated." in result.output
    assert daemon.mock_folders["F4"].name == "Minibus"


def test_invalid_settings(cli_env, monkeypatch):
    monkeypatch.setenv("FOLDERTREE_BACKEND_URL", "ftp://nowhere")
    result = runner.invoke(cli.app, ["tree"])
    assert result.exit_code == 1
    assert "Cannot load settings" in result.output


def test_logfile_is_written(cli_env, school):
    runner.invoke(cli.app, ["flatten", "F1"])
    assert "4 subfolders." in (cli_env / "log.txt").read_text()
