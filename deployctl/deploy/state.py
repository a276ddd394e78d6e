"""Persisted deployment state and the filesystem port it is read through.

The packaging step writes ``service-state.json`` into the package directory;
deploy-time validation reads it back. Both go through a ``FileSystem`` so the
validator can be exercised against an in-memory implementation.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union, runtime_checkable

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from deployctl.config.schemas import FunctionConfig, ServiceConfig
from deployctl.errors import ConfigurationError, MissingStateError

STATE_FILE_NAME = "service-state.json"

PathLike = Union[str, Path]


@runtime_checkable
class FileSystem(Protocol):
    """Port for the file operations deployment validation depends on."""

    def exists(self, path: PathLike) -> bool:
        """Whether ``path`` exists."""
        ...

    def read_json(self, path: PathLike) -> Any:
        """Read and decode a JSON document.

        Raises:
            FileNotFoundError: If ``path`` does not exist
            json.JSONDecodeError: If the file is not valid JSON
        """
        ...

    def write_json(self, path: PathLike, data: Any) -> None:
        """Encode ``data`` as JSON and write it, creating parent directories."""
        ...


class LocalFileSystem:
    """Local disk implementation of ``FileSystem``.

    Relative paths are resolved against ``root``.
    """

    def __init__(self, root: Optional[PathLike] = None):
        self.root = Path(root) if root else Path.cwd()

    def resolve(self, path: PathLike) -> Path:
        path = Path(path)
        if not path.is_absolute():
            path = self.root / path
        return path

    def exists(self, path: PathLike) -> bool:
        return self.resolve(path).exists()

    def read_json(self, path: PathLike) -> Any:
        with open(self.resolve(path), "r") as f:
            return json.load(f)

    def write_json(self, path: PathLike, data: Any) -> None:
        target = self.resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w") as f:
            json.dump(data, f, indent=2)

    def __repr__(self) -> str:
        return f"LocalFileSystem(root={str(self.root)!r})"


class StateService(BaseModel):
    """Service snapshot taken at packaging time."""

    model_config = ConfigDict(extra="allow")

    name: str
    functions: Dict[str, FunctionConfig] = Field(default_factory=dict)

    @field_validator("functions", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return v or {}


class StatePackage(BaseModel):
    """Packaging facts recorded at packaging time."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    individually: bool = False
    artifact_directory_name: str = Field(..., alias="artifactDirectoryName")
    artifact: Optional[str] = None


class DeploymentState(BaseModel):
    """Contents of ``service-state.json``."""

    model_config = ConfigDict(extra="allow")

    service: StateService
    package: StatePackage

    @field_validator("service", mode="before")
    @classmethod
    def validate_service(cls, v: Any) -> Any:
        """Accept the service description shape (``service: <name>``) as well."""
        if isinstance(v, dict) and "name" not in v and "service" in v:
            v = dict(v)
            name = v.pop("service")
            v["name"] = name.get("name") if isinstance(name, dict) else name
        return v

    @classmethod
    def from_service(
        cls,
        service: ServiceConfig,
        artifact_directory_name: str,
        artifact: Optional[str] = None,
    ) -> "DeploymentState":
        """Snapshot a service description after packaging."""
        return cls(
            service=StateService(name=service.service, functions=dict(service.functions)),
            package=StatePackage(
                individually=service.package.individually,
                artifact_directory_name=artifact_directory_name,
                artifact=artifact,
            ),
        )

    def to_json(self) -> Dict[str, Any]:
        """JSON-ready dictionary using the on-disk key names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class StateStore:
    """Reads and writes ``service-state.json`` in a package directory."""

    def __init__(self, package_dir: PathLike, fs: Optional[FileSystem] = None):
        """Initialize state store.

        Args:
            package_dir: Packaging output directory
            fs: File system the state lives on
        """
        self.package_dir = Path(package_dir)
        self.fs: FileSystem = fs if fs is not None else LocalFileSystem()

    @property
    def path(self) -> Path:
        return self.package_dir / STATE_FILE_NAME

    def exists(self) -> bool:
        return self.fs.exists(self.path)

    def load(self) -> DeploymentState:
        """Load the persisted state.

        Raises:
            MissingStateError: If no state file exists
            ConfigurationError: If the state file is not a valid state document
        """
        if not self.fs.exists(self.path):
            raise MissingStateError.not_found(str(self.path))

        try:
            data = self.fs.read_json(self.path)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Deployment state at {self.path} is not valid JSON: {e.msg} (line {e.lineno})",
                config_path=self.path,
                cause=e,
                error_code="STATE_INVALID",
            ) from e

        try:
            state = DeploymentState.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid deployment state at {self.path}: {e.errors()[0]['msg']}",
                config_path=self.path,
                cause=e,
                error_code="STATE_INVALID",
            ) from e

        logger.debug(f"Loaded deployment state for '{state.service.name}' from {self.path}")
        return state

    def save(self, state: DeploymentState) -> Path:
        """Persist ``state`` and return where it was written."""
        self.fs.write_json(self.path, state.to_json())
        logger.debug(f"Saved deployment state to {self.path}")
        return self.path
