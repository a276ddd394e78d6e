"""Tests for persisted deployment state."""

import json

import pytest

from deployctl.config.schemas import ServiceConfig
from deployctl.deploy.state import (
    STATE_FILE_NAME,
    DeploymentState,
    FileSystem,
    LocalFileSystem,
    StateStore,
)
from deployctl.errors import ConfigurationError, MissingStateError


class TestLocalFileSystem:
    """Test LocalFileSystem."""

    def test_satisfies_port(self, tmp_path):
        assert isinstance(LocalFileSystem(tmp_path), FileSystem)

    def test_relative_paths_resolve_against_root(self, tmp_path):
        fs = LocalFileSystem(tmp_path)
        fs.write_json("nested/dir/data.json", {"a": 1})

        assert (tmp_path / "nested" / "dir" / "data.json").exists()
        assert fs.exists("nested/dir/data.json")
        assert fs.read_json("nested/dir/data.json") == {"a": 1}
        assert not fs.exists("nested/missing.json")


class TestStateStore:
    """Test StateStore."""

    def test_round_trip_uses_on_disk_keys(self, tmp_path):
        service = ServiceConfig.model_validate(
            {"service": "orders", "functions": {"create": {"handler": "h.create"}}}
        )
        state = DeploymentState.from_service(service, artifact_directory_name=".deployctl")
        store = StateStore(tmp_path / ".deployctl", LocalFileSystem(tmp_path))

        path = store.save(state)

        raw = json.loads(path.read_text())
        assert path.name == STATE_FILE_NAME
        assert raw["package"]["artifactDirectoryName"] == ".deployctl"
        assert raw["service"]["name"] == "orders"

        loaded = store.load()
        assert loaded.service.functions["create"].handler == "h.create"
        assert loaded.package.individually is False

    def test_missing(self, tmp_path):
        store = StateStore("pkg", LocalFileSystem(tmp_path))

        assert not store.exists()
        with pytest.raises(MissingStateError) as exc_info:
            store.load()
        assert exc_info.value.state_path.endswith(STATE_FILE_NAME)

    def test_invalid_document(self, make_fs):
        fs = make_fs({f"pkg/{STATE_FILE_NAME}": {"service": {"name": "x"}}})

        with pytest.raises(ConfigurationError) as exc_info:
            StateStore("pkg", fs).load()
        assert exc_info.value.error_code == "STATE_INVALID"

    def test_corrupt_json(self, tmp_path):
        state_file = tmp_path / "pkg" / STATE_FILE_NAME
        state_file.parent.mkdir()
        state_file.write_text("{not json")

        with pytest.raises(ConfigurationError) as exc_info:
            StateStore("pkg", LocalFileSystem(tmp_path)).load()
        assert exc_info.value.error_code == "STATE_INVALID"
        assert "not valid JSON" in str(exc_info.value)

    def test_accepts_service_description_shape(self):
        """``service: <name>`` as written in service files is accepted."""
        state = DeploymentState.model_validate(
            {
                "service": {"service": "first-service", "functions": {"first": {}}},
                "package": {"artifactDirectoryName": "some/path"},
            }
        )

        assert state.service.name == "first-service"
        assert list(state.service.functions) == ["first"]
