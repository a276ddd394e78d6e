"""Command and option schemas.

A command definition arrives either as a ``CommandSpec`` or as a plain
mapping taken from a schema table. Both the snake_case field names and the
camelCase keys used by schema tables (``lifecycleEvents``,
``mainProgressTitles``, ``serviceDependencyMode``, ``hasAwsExtension``) are
accepted. Once built, a spec is frozen for the life of the invocation.
"""

from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from deployctl.errors import InvalidOptionError

OPTION_TYPES = ("string", "boolean", "multiple")


class ServiceDependencyMode(str, Enum):
    """Whether a command needs a service description to run."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    NONE = "none"


class OptionSpec(BaseModel):
    """Schema of a single command option."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    usage: str = ""
    shortcut: Optional[str] = None
    type: str = "string"
    required: bool = False

    @field_validator("type", mode="before")
    @classmethod
    def _default_type(cls, value: Any) -> str:
        if not value:
            return "string"
        if value not in OPTION_TYPES:
            raise ValueError(f"type must be one of {list(OPTION_TYPES)}, got {value!r}")
        return value

    @field_validator("shortcut")
    @classmethod
    def _single_character(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and len(value) != 1:
            raise ValueError(f"shortcut must be a single character, got {value!r}")
        return value

    @property
    def is_boolean(self) -> bool:
        return self.type == "boolean"

    @property
    def is_multiple(self) -> bool:
        return self.type == "multiple"


class CommandSpec(BaseModel):
    """Schema of a command: usage, options, lifecycle events and metadata."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    usage: str = ""
    options: Dict[str, OptionSpec] = Field(default_factory=dict)
    lifecycle_events: Tuple[str, ...] = Field(
        default=(),
        validation_alias=AliasChoices("lifecycle_events", "lifecycleEvents"),
    )
    service_dependency_mode: ServiceDependencyMode = Field(
        default=ServiceDependencyMode.NONE,
        validation_alias=AliasChoices("service_dependency_mode", "serviceDependencyMode"),
    )
    has_provider_extension: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "has_provider_extension", "hasProviderExtension", "hasAwsExtension"
        ),
    )
    progress_titles: Dict[str, str] = Field(
        default_factory=dict,
        validation_alias=AliasChoices(
            "progress_titles", "progressTitles", "mainProgressTitles"
        ),
    )

    @field_validator("name")
    @classmethod
    def _normalize_name(cls, value: str) -> str:
        path = normalize_command_path(value)
        if not path:
            raise ValueError("command name must not be empty")
        return path

    @field_validator("options", mode="before")
    @classmethod
    def _normalize_options(cls, value: Any, info: ValidationInfo) -> Dict[str, OptionSpec]:
        command = info.data.get("name")
        normalized: Dict[str, OptionSpec] = {}
        for option_name, option in (value or {}).items():
            if isinstance(option, OptionSpec):
                normalized[option_name] = option
                continue
            try:
                normalized[option_name] = OptionSpec.model_validate(dict(option or {}))
            except ValidationError as e:
                reason = e.errors()[0]["msg"]
                raise InvalidOptionError(
                    f"Invalid schema for option '{option_name}': {reason}",
                    option=option_name,
                    command=command,
                    error_code="OPTION_SCHEMA_INVALID",
                    recoverable=False,
                ) from e
        return normalized

    @field_validator("progress_titles", mode="before")
    @classmethod
    def _titles_as_dict(cls, value: Any) -> Dict[str, str]:
        # Schema tables may use a list of pairs to keep ordering explicit
        return dict(value or {})

    @model_validator(mode="after")
    def _unique_shortcuts(self) -> "CommandSpec":
        seen: Dict[str, str] = {}
        for option_name, option in self.options.items():
            if option.shortcut is None:
                continue
            if option.shortcut in seen:
                raise InvalidOptionError(
                    f"Shortcut '-{option.shortcut}' of '{option_name}' is already used by "
                    f"'{seen[option.shortcut]}'",
                    option=option_name,
                    command=self.name,
                    error_code="OPTION_SHORTCUT_CONFLICT",
                    recoverable=False,
                )
            seen[option.shortcut] = option_name
        return self

    @property
    def words(self) -> Tuple[str, ...]:
        return tuple(self.name.split())

    @property
    def hook_prefix(self) -> str:
        """Command path as it appears inside hook names."""
        return ":".join(self.words)

    def shortcuts(self) -> Dict[str, str]:
        """Map of shortcut character to long option name."""
        return {
            option.shortcut: option_name
            for option_name, option in self.options.items()
            if option.shortcut
        }

    def progress_title(self, hook_name: str) -> Optional[str]:
        return self.progress_titles.get(hook_name)


def normalize_command_path(command_path: str) -> str:
    """``"deploy:function"`` and ``" deploy  function"`` -> ``"deploy function"``."""
    return " ".join(command_path.replace(":", " ").split())


def build_command_spec(command_path: str, definition: Any) -> CommandSpec:
    """Build a ``CommandSpec`` from a spec or a schema-table mapping."""
    if isinstance(definition, CommandSpec):
        path = normalize_command_path(command_path)
        if definition.name != path:
            return definition.model_copy(update={"name": path})
        return definition
    data = dict(definition or {})
    data["name"] = command_path
    return CommandSpec.model_validate(data)
