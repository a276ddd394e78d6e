"""Command schema registry.

The registry is an explicit value owned by the expander and dispatcher; tests
build their own instead of sharing process-wide state.
"""

from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from loguru import logger

from deployctl.commands.builtin import BUILTIN_COMMANDS, PROVIDER_OPTIONS
from deployctl.commands.schema import (
    CommandSpec,
    OptionSpec,
    build_command_spec,
    normalize_command_path,
)
from deployctl.errors import InvalidLifecycleEventError, UnknownCommandError

PHASES = ("before", "", "after")


def merge_options(
    spec: CommandSpec,
    extra: Mapping[str, Any],
) -> CommandSpec:
    """Union ``extra`` options into ``spec``; existing definitions win.

    An added option whose shortcut is already taken keeps its long name but
    loses the shortcut.
    """
    options: Dict[str, OptionSpec] = dict(spec.options)
    taken = set(spec.shortcuts())
    for name, definition in extra.items():
        if name in options:
            continue
        option = definition if isinstance(definition, OptionSpec) else OptionSpec.model_validate(
            dict(definition or {})
        )
        if option.shortcut and option.shortcut in taken:
            logger.debug(
                f"Dropping shortcut -{option.shortcut} of '{name}' on '{spec.name}': already taken"
            )
            option = option.model_copy(update={"shortcut": None})
        if option.shortcut:
            taken.add(option.shortcut)
        options[name] = option
    return spec.model_copy(update={"options": options})


class CommandRegistry:
    """Holds command schemas keyed by space-separated command path."""

    def __init__(self, provider_options: Optional[Mapping[str, Any]] = None):
        """Initialize registry.

        Args:
            provider_options: Options unioned into every provider-tagged command
        """
        self._commands: Dict[str, CommandSpec] = {}
        self.provider_options: Dict[str, OptionSpec] = {
            name: OptionSpec.model_validate(dict(definition or {}))
            for name, definition in (provider_options or {}).items()
        }

    def register(self, command_path: str, spec: Any) -> CommandSpec:
        """Insert or overwrite a command definition."""
        command = build_command_spec(command_path, spec)
        if command.has_provider_extension and self.provider_options:
            command = merge_options(command, self.provider_options)
        if command.name in self._commands:
            logger.debug(f"Overriding command: {command.name}")
        self._commands[command.name] = command
        logger.debug(f"Registered command: {command.name}")
        return command

    def extend_options(self, command_path: str, options: Mapping[str, Any]) -> CommandSpec:
        """Add options to an already registered command (first write wins)."""
        command = self.get(command_path)
        if command is None:
            raise UnknownCommandError.for_command(
                normalize_command_path(command_path), self.list_commands()
            )
        command = merge_options(command, options)
        self._commands[command.name] = command
        return command

    def get(self, command_path: str) -> Optional[CommandSpec]:
        """Exact lookup, ``None`` if absent."""
        return self._commands.get(normalize_command_path(command_path))

    def match(self, words: Sequence[str]) -> Tuple[CommandSpec, Tuple[str, ...]]:
        """Longest registered command prefix of ``words`` and the unmatched rest."""
        words = tuple(normalize_command_path(" ".join(words)).split())
        for end in range(len(words), 0, -1):
            command = self._commands.get(" ".join(words[:end]))
            if command is not None:
                return command, words[end:]
        raise UnknownCommandError.for_command(" ".join(words), self.list_commands())

    def resolve(self, command_path: str) -> CommandSpec:
        """Exact or prefix-compatible lookup.

        Raises:
            UnknownCommandError: If no registered command matches
        """
        command, _ = self.match(command_path.replace(":", " ").split())
        return command

    def deprecated_hook_aliases(self) -> Dict[str, str]:
        """Map old hook names of deprecated events to their redirect targets."""
        # Imported here: the pipeline package depends on this module
        from deployctl.pipeline.events import DeprecatedEvent, hook_name, parse_lifecycle_event

        aliases: Dict[str, str] = {}
        for command in self._commands.values():
            for raw in command.lifecycle_events:
                try:
                    event = parse_lifecycle_event(raw, command=command.name)
                except InvalidLifecycleEventError:
                    # Reported when the command is expanded
                    continue
                if not isinstance(event, DeprecatedEvent):
                    continue
                for phase in PHASES:
                    old = hook_name(phase, command.hook_prefix, event.old_name)
                    new = hook_name(
                        phase,
                        ":".join(event.target_command.split()),
                        event.target_event,
                    )
                    aliases[old] = new
        return aliases

    def list_commands(self) -> List[str]:
        return sorted(self._commands)

    def __contains__(self, command_path: str) -> bool:
        return normalize_command_path(command_path) in self._commands

    def __iter__(self) -> Iterator[CommandSpec]:
        return iter(self._commands.values())

    def __len__(self) -> int:
        return len(self._commands)

    def __repr__(self) -> str:
        return f"CommandRegistry(commands={len(self._commands)})"


def build_registry(
    commands: Optional[Mapping[str, Any]] = None,
    provider_options: Optional[Mapping[str, Any]] = None,
) -> CommandRegistry:
    """Build a registry from a schema table and provider-wide options.

    Base definitions are registered first, provider-wide options are merged
    second with existing definitions winning.
    """
    registry = CommandRegistry(
        provider_options=PROVIDER_OPTIONS if provider_options is None else provider_options
    )
    for command_path, definition in (BUILTIN_COMMANDS if commands is None else commands).items():
        registry.register(command_path, definition)
    return registry
