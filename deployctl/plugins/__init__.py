"""Plugin system and built-in plugins."""

from .base import HookSpec, Plugin, PluginContext, PluginMetadata
from .loader import PluginLoader, builtin_plugins, load_plugins

__all__ = [
    "HookSpec",
    "Plugin",
    "PluginContext",
    "PluginLoader",
    "PluginMetadata",
    "builtin_plugins",
    "load_plugins",
]
