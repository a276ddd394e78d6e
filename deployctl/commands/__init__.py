"""Command schemas, the registry and option parsing."""

from .builtin import BUILTIN_COMMANDS, PROVIDER_OPTIONS
from .options import build_click_command, parse_options, validate_options
from .registry import CommandRegistry, build_registry, merge_options
from .schema import CommandSpec, OptionSpec, ServiceDependencyMode, normalize_command_path

__all__ = [
    "BUILTIN_COMMANDS",
    "PROVIDER_OPTIONS",
    "CommandRegistry",
    "CommandSpec",
    "OptionSpec",
    "ServiceDependencyMode",
    "build_click_command",
    "build_registry",
    "merge_options",
    "normalize_command_path",
    "parse_options",
    "validate_options",
]
