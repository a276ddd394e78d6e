"""Pytest configuration and shared fixtures for all tests."""

# Add project root to path
import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest
import yaml

sys.path.insert(0, str(Path(__file__).parent.parent))

from deployctl.commands.registry import CommandRegistry, build_registry
from deployctl.config.schemas import DeployctlSettings
from deployctl.deploy.state import PathLike


class MemoryFileSystem:
    """In-memory ``FileSystem`` that records every call."""

    def __init__(self, files: Dict[str, Any] = None):
        self.files: Dict[str, Any] = {str(k): v for k, v in (files or {}).items()}
        self.calls: List[tuple] = []

    def exists(self, path: PathLike) -> bool:
        self.calls.append(("exists", str(path)))
        return str(path) in self.files

    def read_json(self, path: PathLike) -> Any:
        self.calls.append(("read_json", str(path)))
        return self.files[str(path)]

    def write_json(self, path: PathLike, data: Any) -> None:
        self.calls.append(("write_json", str(path)))
        self.files[str(path)] = data

    @property
    def exists_calls(self) -> List[str]:
        return [path for op, path in self.calls if op == "exists"]

    @property
    def writes(self) -> List[str]:
        return [path for op, path in self.calls if op == "write_json"]


@pytest.fixture
def memory_fs():
    """Empty in-memory file system."""
    return MemoryFileSystem()


@pytest.fixture
def make_fs():
    """Factory for in-memory file systems seeded with files."""
    return MemoryFileSystem


@pytest.fixture
def registry() -> CommandRegistry:
    """Registry with the built-in commands."""
    return build_registry()


@pytest.fixture
def empty_registry() -> CommandRegistry:
    """Registry with no commands and no provider options."""
    return CommandRegistry()


@pytest.fixture
def settings() -> DeployctlSettings:
    """Settings independent of the environment running the tests."""
    return DeployctlSettings(
        _env_file=None,
        log_level="DEBUG",
        plugins=[],
        package_dir=Path(".deployctl"),
    )


@pytest.fixture
def write_service(tmp_path):
    """Write a service file into a temporary service directory."""

    def _write(config: Dict[str, Any], name: str = "serverless.yml") -> Path:
        path = tmp_path / name
        path.write_text(yaml.safe_dump(config))
        return tmp_path

    return _write


@pytest.fixture
def service_config() -> Dict[str, Any]:
    """A minimal two-function service description."""
    return {
        "service": "orders",
        "provider": {"name": "aws", "stage": "dev"},
        "functions": {
            "create": {"handler": "handler.create"},
            "list": {"handler": "handler.list", "events": [{"http": {"method": "GET", "path": "/"}}]},
        },
    }


@pytest.fixture
def service_dir(write_service, service_config) -> Path:
    """Service directory with a service file and a handler module."""
    directory = write_service(service_config)
    (directory / "handler.py").write_text("def create(event, context):\n    return {}\n")
    return directory
