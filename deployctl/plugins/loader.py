"""Plugin loading.

Built-in plugins load first, then plugins named in the settings, then the
service's ``plugins:`` list, in order. A reference is either a dotted module
path or a path to a ``.py`` file relative to the service directory.
"""

import importlib
import importlib.util
import inspect
from pathlib import Path
from types import ModuleType
from typing import Any, Dict, List, Optional, Sequence, Type

from loguru import logger

from deployctl.errors import PluginError
from deployctl.pipeline.hooks import HookTable
from deployctl.plugins.base import Plugin, PluginContext


def builtin_plugins() -> List[Type[Plugin]]:
    """Plugin classes loaded for every invocation, in load order."""
    from deployctl.plugins.deploy import DeployPlugin
    from deployctl.plugins.package import PackagePlugin
    from deployctl.plugins.print import PluginListPlugin, PrintPlugin

    return [PackagePlugin, DeployPlugin, PrintPlugin, PluginListPlugin]


def _is_file_reference(reference: str) -> bool:
    return reference.startswith((".", "/")) or reference.endswith(".py")


class PluginLoader:
    """Loads plugins and builds the frozen hook table."""

    def __init__(self, context: PluginContext):
        """Initialize plugin loader.

        Args:
            context: Context handed to every plugin
        """
        self.context = context
        self.plugins: Dict[str, Plugin] = {}

    def references(self) -> List[str]:
        """Third-party plugin references, settings first, then the service."""
        references = list(self.context.settings.plugins)
        if self.context.service is not None:
            references.extend(self.context.service.plugins)
        return references

    def load_all(
        self,
        builtins: Optional[Sequence[Type[Plugin]]] = None,
        references: Optional[Sequence[str]] = None,
    ) -> HookTable:
        """Load every plugin and return the frozen hook table.

        Raises:
            PluginError: If a plugin cannot be imported or registered
        """
        for plugin_class in builtin_plugins() if builtins is None else builtins:
            self.add(plugin_class(self.context))

        for reference in self.references() if references is None else references:
            if reference in self.plugins:
                logger.warning(f"Plugin '{reference}' listed more than once, skipping")
                continue
            self.add(self.load_plugin(reference), key=reference)

        for plugin in self.plugins.values():
            self._register_commands(plugin)

        return self.build_hook_table()

    def add(self, plugin: Plugin, key: Optional[str] = None) -> Plugin:
        """Add an instantiated plugin."""
        key = key or plugin.name
        if key in self.plugins:
            raise PluginError(
                f"Plugin '{key}' is already loaded",
                plugin_name=plugin.name,
                error_code="PLUGIN_DUPLICATE",
            )
        self.plugins[key] = plugin
        self.context.loaded.append(plugin.get_metadata())
        logger.debug(f"Loaded plugin: {plugin.name}")
        return plugin

    def load_plugin(self, reference: str) -> Plugin:
        """Import ``reference`` and instantiate the plugin it defines.

        Raises:
            PluginError: If the module cannot be imported or defines no plugin
        """
        if _is_file_reference(reference):
            path = self.context.resolve(reference)
            if path.is_dir():
                path = path / "__init__.py"
            elif path.suffix != ".py":
                path = path.with_suffix(".py")
            module = self._load_file(reference, path)
        else:
            path = None
            try:
                module = importlib.import_module(reference)
            except Exception as e:
                raise PluginError.load_failed(reference, str(e)) from e

        plugin = self._extract_plugin_from_module(module, reference)
        if plugin is None:
            raise PluginError.load_failed(
                reference, "no Plugin subclass or create_plugin() found", path
            )
        return plugin

    def _load_file(self, reference: str, path: Path) -> ModuleType:
        if not path.exists():
            raise PluginError.load_failed(reference, f"{path} does not exist", path)
        try:
            spec = importlib.util.spec_from_file_location(path.stem, path)
            if spec is None or spec.loader is None:
                raise ImportError(f"cannot import {path}")
            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)
        except Exception as e:
            raise PluginError.load_failed(reference, str(e), path) from e
        return module

    def _extract_plugin_from_module(self, module: Any, reference: str) -> Optional[Plugin]:
        """Extract plugin from module."""
        # Plugin subclasses defined in the module itself
        for attr_name in dir(module):
            attr = getattr(module, attr_name)
            if (
                inspect.isclass(attr)
                and issubclass(attr, Plugin)
                and attr is not Plugin
                and attr.__module__ == module.__name__
            ):
                try:
                    return attr(self.context)
                except Exception as e:
                    raise PluginError.load_failed(
                        reference, f"cannot instantiate {attr_name}: {e}"
                    ) from e

        # Plugin factory function
        factory = getattr(module, "create_plugin", None)
        if callable(factory):
            try:
                plugin = factory(self.context)
            except Exception as e:
                raise PluginError.load_failed(reference, f"create_plugin() failed: {e}") from e
            if not isinstance(plugin, Plugin):
                raise PluginError.load_failed(
                    reference, f"create_plugin() returned {type(plugin).__name__}, not a Plugin"
                )
            return plugin

        return None

    def _register_commands(self, plugin: Plugin) -> None:
        registry = self.context.registry
        for command_path, definition in plugin.get_commands().items():
            definition = dict(definition or {})
            events = definition.get("lifecycleEvents", definition.get("lifecycle_events"))
            if command_path in registry and not events:
                registry.extend_options(command_path, definition.get("options") or {})
                logger.debug(f"Plugin {plugin.name} extended options of '{command_path}'")
            else:
                registry.register(command_path, definition)
                logger.debug(f"Plugin {plugin.name} registered command '{command_path}'")

    def build_hook_table(self) -> HookTable:
        """Collect every plugin's hooks into a frozen table.

        Hooks bound to the old name of a deprecated lifecycle event are
        moved to the event it redirects to.
        """
        aliases = self.context.registry.deprecated_hook_aliases()
        table = HookTable()
        for plugin in self.plugins.values():
            for name, handlers in plugin.get_hooks().items():
                if name in aliases:
                    logger.warning(
                        f"Plugin {plugin.name} uses deprecated hook '{name}', "
                        f"use '{aliases[name]}' instead"
                    )
                    name = aliases[name]
                if callable(handlers):
                    handlers = [handlers]
                for handler in handlers:
                    table.add(name, handler, plugin.name)
        return table.freeze()


def load_plugins(context: PluginContext) -> HookTable:
    """Load built-in and configured plugins into a frozen hook table."""
    return PluginLoader(context).load_all()
