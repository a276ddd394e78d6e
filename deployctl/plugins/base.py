"""Base classes for deployctl plugins.

A plugin contributes hook handlers (``get_hooks``) and, optionally, new
commands or options for existing commands (``get_commands``). Plugins are
instantiated once per invocation with a ``PluginContext``.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel

from deployctl.commands.registry import CommandRegistry
from deployctl.config.schemas import DeployctlSettings, ServiceConfig
from deployctl.deploy.state import FileSystem, LocalFileSystem
from deployctl.pipeline.hooks import HookContext, HookHandler


class PluginMetadata(BaseModel):
    """Metadata for a plugin."""

    name: str
    version: str = "1.0.0"
    description: Optional[str] = None


@dataclass
class PluginContext:
    """What a plugin can see of the current invocation."""

    settings: DeployctlSettings
    registry: CommandRegistry
    service_dir: Path
    service: Optional[ServiceConfig] = None
    fs: Optional[FileSystem] = None
    loaded: List[PluginMetadata] = field(default_factory=list)

    def __post_init__(self):
        if self.fs is None:
            self.fs = LocalFileSystem(self.service_dir)

    @property
    def plugin_names(self) -> List[str]:
        """Names of the plugins loaded so far, in load order."""
        return [metadata.name for metadata in self.loaded]

    def resolve(self, path: Union[str, Path]) -> Path:
        """Resolve ``path`` against the service directory."""
        path = Path(path)
        if not path.is_absolute():
            path = self.service_dir / path
        return path

    @property
    def package_dir(self) -> Path:
        """Default packaging output directory: the service's ``package.path``, else the settings'."""
        if self.service is not None and self.service.package.path:
            return self.resolve(self.service.package.path)
        return self.resolve(self.settings.package_dir)

    def package_dir_for(self, hook_context: HookContext) -> Path:
        """Packaging directory of one dispatch: ``--package`` or the default."""
        option = hook_context.option("package")
        if option:
            return self.resolve(option)
        return self.package_dir


HookSpec = Union[HookHandler, Sequence[HookHandler]]


class Plugin:
    """Base class for plugins.

    Subclasses set ``name`` and override ``get_hooks`` and, where they add
    commands, ``get_commands``.
    """

    name: str = ""
    version: str = "1.0.0"
    description: Optional[str] = None

    def __init__(self, context: PluginContext):
        """Initialize plugin.

        Args:
            context: Invocation context
        """
        self.context = context
        if not self.name:
            self.name = type(self).__name__

    @property
    def service(self) -> Optional[ServiceConfig]:
        return self.context.service

    def get_metadata(self) -> PluginMetadata:
        """Return plugin metadata."""
        return PluginMetadata(name=self.name, version=self.version, description=self.description)

    def get_hooks(self) -> Dict[str, HookSpec]:
        """Hook name to handler, or to handlers in execution order."""
        return {}

    def get_commands(self) -> Dict[str, Dict[str, Any]]:
        """Command path to schema.

        A schema for an already registered command that declares no lifecycle
        events only adds its ``options`` to that command.
        """
        return {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
