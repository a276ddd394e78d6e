"""Built-in output plugins: ``print`` and ``plugin list``."""

import json
from typing import Any, Dict

import yaml

from deployctl.errors import InvalidOptionError
from deployctl.pipeline.hooks import HookContext
from deployctl.plugins.base import HookSpec, Plugin
from deployctl.utils.console import create_table, get_console

FORMATS = ("yaml", "json", "text")


def select_path(data: Any, path: str) -> Any:
    """Follow a period-separated ``path`` into nested mappings."""
    for key in path.split("."):
        if not isinstance(data, dict) or key not in data:
            raise InvalidOptionError.invalid_value("path", path, "an existing key path", "print")
        data = data[key]
    return data


def render(data: Any, fmt: str) -> str:
    if fmt == "json":
        return json.dumps(data, indent=2, default=str)
    if fmt == "text" and not isinstance(data, (dict, list)):
        return str(data)
    return yaml.safe_dump(data, sort_keys=False, default_flow_style=False).rstrip()


class PrintPlugin(Plugin):
    """Prints the resolved service description."""

    name = "print"
    description = "Prints the resolved service description"

    def get_hooks(self) -> Dict[str, HookSpec]:
        return {"print:print": self.print_service}

    def print_service(self, ctx: HookContext) -> None:
        fmt = ctx.option("format") or "yaml"
        if fmt not in FORMATS:
            raise InvalidOptionError.invalid_value("format", fmt, "one of yaml, json, text", ctx.command)

        data: Any = self.service.to_dict() if self.service is not None else {}
        if ctx.option("path"):
            data = select_path(data, ctx.option("path"))

        output = render(data, fmt)
        ctx.set("output", output)
        get_console().print(output, markup=False, highlight=False)


class PluginListPlugin(Plugin):
    """Lists the plugins loaded for this invocation."""

    name = "plugin-list"
    description = "Lists loaded plugins"

    def get_hooks(self) -> Dict[str, HookSpec]:
        return {"plugin:list:list": self.list_plugins}

    def list_plugins(self, ctx: HookContext) -> None:
        ctx.set("plugins", self.context.plugin_names)
        table = create_table("Plugins", ["Name", "Version", "Description"])
        for metadata in self.context.loaded:
            table.add_row(metadata.name, metadata.version, metadata.description or "")
        get_console().print(table)
