"""Configuration schemas for deployctl.

Two kinds of configuration exist: tool settings (``DeployctlSettings``, read
from the environment and ``.env``) and the service description
(``ServiceConfig``, read from the service's YAML file).
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SERVICE_FILES = [
    "serverless.yml",
    "serverless.yaml",
    "deployctl.yml",
    "deployctl.yaml",
]


class FunctionPackage(BaseModel):
    """Per-function packaging overrides."""

    model_config = ConfigDict(extra="allow")

    individually: Optional[bool] = Field(None, description="Package this function on its own")
    artifact: Optional[str] = Field(None, description="Pre-built artifact for this function")
    patterns: List[str] = Field(default_factory=list, description="Include/exclude globs")


class FunctionConfig(BaseModel):
    """A function of the service."""

    model_config = ConfigDict(extra="allow")

    handler: Optional[str] = None
    image: Optional[Any] = Field(None, description="Container image; no zip artifact")
    timeout: Optional[int] = Field(None, ge=1, description="Timeout in seconds")
    events: List[Dict[str, Any]] = Field(default_factory=list)
    package: Optional[FunctionPackage] = None

    @field_validator("events", mode="before")
    @classmethod
    def validate_events(cls, v: Any) -> List[Dict[str, Any]]:
        """Events are single-key mappings; a bare string is an event without settings."""
        events = []
        for event in v or []:
            events.append({event: {}} if isinstance(event, str) else event)
        return events

    @property
    def individually(self) -> Optional[bool]:
        return self.package.individually if self.package else None

    @property
    def artifact(self) -> Optional[str]:
        return self.package.artifact if self.package else None


class PackageConfig(BaseModel):
    """Service-level packaging settings."""

    model_config = ConfigDict(extra="allow")

    individually: bool = Field(False, description="Package each function separately")
    artifact: Optional[str] = Field(None, description="Pre-built service artifact")
    path: Optional[str] = Field(None, description="Packaging output directory of this service")
    patterns: List[str] = Field(default_factory=list, description="Include/exclude globs")


class ProviderConfig(BaseModel):
    """Provider section of the service description."""

    model_config = ConfigDict(extra="allow")

    name: str = Field("aws", description="Provider name")
    stage: str = Field("dev", description="Default stage")
    region: str = Field("us-east-1", description="Default region")


class ServiceConfig(BaseModel):
    """Service description loaded from the service file."""

    model_config = ConfigDict(extra="allow")

    service: str = Field(..., description="Service name")
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    functions: Dict[str, FunctionConfig] = Field(default_factory=dict)
    package: PackageConfig = Field(default_factory=PackageConfig)
    plugins: List[str] = Field(default_factory=list, description="Plugin references")

    @field_validator("service", mode="before")
    @classmethod
    def validate_service(cls, v: Any) -> Any:
        """Accept ``service: {name: ...}``."""
        if isinstance(v, dict):
            return v.get("name")
        return v

    @field_validator("provider", mode="before")
    @classmethod
    def validate_provider(cls, v: Any) -> Any:
        """Accept ``provider: aws``."""
        if isinstance(v, str):
            return {"name": v}
        return v

    @field_validator("functions", "package", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return v or {}

    @field_validator("plugins", mode="before")
    @classmethod
    def validate_plugins(cls, v: Any) -> List[str]:
        """Accept a list or ``{modules: [...], localPath: ...}``."""
        if isinstance(v, dict):
            return list(v.get("modules") or [])
        return list(v or [])

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary, dropping unset optionals."""
        return self.model_dump(exclude_none=True)


class DeployctlSettings(BaseSettings):
    """Tool settings.

    Loaded from ``DEPLOYCTL_*`` environment variables and a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="DEPLOYCTL_",
        env_nested_delimiter="__",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field("INFO", description="Logging level")
    log_format: str = Field("simple", description="Log format (simple or structured)")
    service_files: List[str] = Field(
        default_factory=lambda: list(DEFAULT_SERVICE_FILES),
        description="Service file names searched in order",
    )
    package_dir: Path = Field(Path(".deployctl"), description="Packaging output directory")
    plugins: List[str] = Field(default_factory=list, description="Extra plugins loaded for every service")

    @field_validator("log_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid logging level. Must be one of: {valid_levels}")
        return v_upper

    @field_validator("log_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in ("simple", "structured"):
            raise ValueError("Invalid log format. Must be 'simple' or 'structured'")
        return v

    def merge(self, other: Union["DeployctlSettings", Dict[str, Any]]) -> "DeployctlSettings":
        """Return a copy with ``other``'s values applied."""
        data = other if isinstance(other, dict) else other.model_dump(exclude_unset=True)
        return self.model_copy(update=data)
