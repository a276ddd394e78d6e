"""Runtime wiring: settings, service, registry, plugins and dispatcher.

``create_runtime`` turns a command line into everything a dispatch needs.
The order matters: the command is resolved against the built-in schema
first so commands that need no service never read the service file; the
service (when found) is loaded before plugins because it lists them; the
command is then resolved again since plugins may add commands and options.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from deployctl.commands.options import parse_options
from deployctl.commands.registry import CommandRegistry, build_registry
from deployctl.commands.schema import CommandSpec, ServiceDependencyMode
from deployctl.config.loader import ServiceConfigLoader
from deployctl.config.schemas import DeployctlSettings, ServiceConfig
from deployctl.errors import ServiceNotFoundError, UnknownCommandError
from deployctl.pipeline.dispatcher import (
    CancellationToken,
    DispatchListener,
    DispatchRun,
    HookDispatcher,
)
from deployctl.pipeline.hooks import HookTable
from deployctl.plugins.base import Plugin, PluginContext
from deployctl.plugins.loader import PluginLoader


@dataclass
class Environment:
    """Registry, service and plugins of one invocation."""

    settings: DeployctlSettings
    registry: CommandRegistry
    service_dir: Path
    service: Optional[ServiceConfig] = None
    service_file: Optional[Path] = None
    hook_table: HookTable = field(default_factory=lambda: HookTable().freeze())
    plugins: Dict[str, Plugin] = field(default_factory=dict)

    def dispatcher(self, listeners: Sequence[DispatchListener] = ()) -> HookDispatcher:
        return HookDispatcher(self.registry, listeners=listeners)


@dataclass
class Runtime:
    """A resolved command ready to dispatch."""

    environment: Environment
    command: CommandSpec
    options: Dict[str, Any]

    async def dispatch(
        self,
        *,
        cancel_token: Optional[CancellationToken] = None,
        last_hook: Optional[str] = None,
        listeners: Sequence[DispatchListener] = (),
    ) -> DispatchRun:
        """Dispatch the command through every loaded plugin."""
        return await self.environment.dispatcher(listeners).dispatch(
            self.command.name,
            self.options,
            self.environment.hook_table,
            cancel_token=cancel_token,
            last_hook=last_hook,
        )


def split_command_line(argv: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Leading words name the command; everything from the first flag on is options."""
    words: List[str] = []
    for index, token in enumerate(argv):
        if token.startswith("-"):
            return words, list(argv[index:])
        words.append(token)
    return words, []


def find_service_file(
    settings: DeployctlSettings,
    cwd: Path,
    config_path: Optional[Path] = None,
) -> Optional[Path]:
    """Explicit ``config_path`` or the first service file found in ``cwd``."""
    if config_path is not None:
        path = config_path if config_path.is_absolute() else cwd / config_path
        if not path.is_file():
            raise ServiceNotFoundError(
                f"Service file {path} does not exist",
                config_path=path,
                error_code="SERVICE_FILE_MISSING",
            )
        return path
    return ServiceConfigLoader.find_service_file(cwd, settings.service_files)


def load_environment(
    settings: Optional[DeployctlSettings] = None,
    cwd: Optional[Path] = None,
    config_path: Optional[Path] = None,
    load_service: bool = True,
) -> Environment:
    """Load service (optionally) and plugins into a ready environment.

    Raises:
        ConfigurationError: Service file is unreadable or invalid
        PluginError: A plugin cannot be loaded
    """
    settings = settings or DeployctlSettings()
    cwd = (cwd or Path.cwd()).resolve()
    registry = build_registry()

    service = None
    service_file = None
    service_dir = cwd
    if load_service:
        service_file = find_service_file(settings, cwd, config_path)
        if service_file is not None:
            service = ServiceConfigLoader.load_service(service_file)
            service_dir = service_file.parent
            logger.debug(f"Loaded service '{service.service}' from {service_file}")

    context = PluginContext(
        settings=settings,
        registry=registry,
        service_dir=service_dir,
        service=service,
    )
    loader = PluginLoader(context)
    hook_table = loader.load_all()

    return Environment(
        settings=settings,
        registry=registry,
        service_dir=service_dir,
        service=service,
        service_file=service_file,
        hook_table=hook_table,
        plugins=loader.plugins,
    )


def _service_searched(settings: DeployctlSettings, cwd: Path, config_path: Optional[Path]) -> List[Path]:
    if config_path is not None:
        return [config_path]
    return ServiceConfigLoader.candidates(cwd, settings.service_files)


def create_runtime(
    argv: Sequence[str],
    settings: Optional[DeployctlSettings] = None,
    cwd: Optional[Path] = None,
    config_path: Optional[Path] = None,
) -> Runtime:
    """Resolve ``argv`` into a runtime.

    Args:
        argv: Command words followed by flags, e.g. ``["deploy", "-s", "prod"]``
        settings: Tool settings (read from the environment if omitted)
        cwd: Directory to look for the service in
        config_path: Explicit service file

    Raises:
        UnknownCommandError: No command matches the leading words
        ServiceNotFoundError: The command requires a service and none exists
        InvalidOptionError: Flags do not match the command's options
    """
    settings = settings or DeployctlSettings()
    cwd = (cwd or Path.cwd()).resolve()
    words, flags = split_command_line(argv)
    if not words:
        raise UnknownCommandError("No command given", error_code="COMMAND_MISSING")

    builtin = build_registry()
    mode = None
    for end in range(len(words), 0, -1):
        known = builtin.get(" ".join(words[:end]))
        if known is not None:
            mode = known.service_dependency_mode
            break

    environment = load_environment(
        settings,
        cwd,
        config_path,
        load_service=mode is not ServiceDependencyMode.NONE,
    )
    command, rest = environment.registry.match(words)
    if rest:
        raise UnknownCommandError.for_command(" ".join(words), environment.registry.list_commands())

    if (
        command.service_dependency_mode is ServiceDependencyMode.REQUIRED
        and environment.service is None
    ):
        raise ServiceNotFoundError.for_command(
            command.name, _service_searched(settings, cwd, config_path)
        )

    options = parse_options(flags, command)
    logger.debug(f"Resolved command '{command.name}' with options {options}")
    return Runtime(environment=environment, command=command, options=options)
