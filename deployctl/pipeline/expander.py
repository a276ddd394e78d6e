"""Lifecycle event expansion into ordered hook names."""

from typing import Dict, List, Set, Tuple

from loguru import logger

from deployctl.commands.registry import CommandRegistry
from deployctl.commands.schema import CommandSpec
from deployctl.errors import InvalidLifecycleEventError
from deployctl.pipeline.events import (
    DeprecatedEvent,
    LifecycleEvent,
    hook_names,
    parse_lifecycle_event,
)


class LifecycleExpander:
    """Turns a command's lifecycle events into its canonical hook order.

    For events ``[e1, ..., en]`` the order is ``before:e1, e1, after:e1,
    before:e2, ...``. A deprecated entry contributes the three hook names of
    its redirect target at the position it occupies.

    Parsed events are cached per ``CommandSpec`` instance; re-registering a
    command replaces the instance and so invalidates its cache entry.
    """

    def __init__(self, registry: CommandRegistry):
        """Initialize expander.

        Args:
            registry: Registry the command paths are resolved against
        """
        self.registry = registry
        self._parsed: Dict[str, Tuple[CommandSpec, Tuple[LifecycleEvent, ...]]] = {}

    def events(self, command: CommandSpec) -> Tuple[LifecycleEvent, ...]:
        """Parsed lifecycle events of ``command``."""
        cached = self._parsed.get(command.name)
        if cached is not None and cached[0] is command:
            return cached[1]

        parsed = tuple(
            parse_lifecycle_event(raw, command=command.name)
            for raw in command.lifecycle_events
        )
        self._parsed[command.name] = (command, parsed)
        return parsed

    def expand(self, command_path: str) -> Tuple[str, ...]:
        """Ordered hook names for ``command_path``.

        Raises:
            UnknownCommandError: If the command is not registered
            InvalidLifecycleEventError: If an event is malformed, a redirect
                target is missing, or the expansion repeats a hook name
        """
        command = self.registry.resolve(command_path)
        hooks: List[str] = []

        for event in self.events(command):
            if isinstance(event, DeprecatedEvent):
                group = self._resolve_redirect(command, event, set())
            else:
                group = hook_names(command.hook_prefix, event.name)
            hooks.extend(group)

        seen: Set[str] = set()
        for name in hooks:
            if name in seen:
                raise InvalidLifecycleEventError(
                    f"Lifecycle of '{command.name}' produces hook '{name}' more than once",
                    command=command.name,
                    error_code="LIFECYCLE_DUPLICATE_HOOK",
                )
            seen.add(name)

        logger.debug(f"Expanded '{command.name}' into {len(hooks)} hooks")
        return tuple(hooks)

    def _resolve_redirect(
        self,
        command: CommandSpec,
        event: DeprecatedEvent,
        visited: Set[Tuple[str, str]],
    ) -> Tuple[str, str, str]:
        raw = f"deprecated#{event.old_name}->{event.target_prefix}:{event.target_event}"
        key = (event.target_command, event.target_event)
        if key in visited:
            raise InvalidLifecycleEventError.malformed(
                raw, "redirect chain loops back on itself", command.name
            )
        visited.add(key)

        target = self.registry.get(event.target_command)
        if target is not None:
            for candidate in self.events(target):
                if candidate.name != event.target_event:
                    continue
                if isinstance(candidate, DeprecatedEvent):
                    return self._resolve_redirect(target, candidate, visited)
                return hook_names(target.hook_prefix, candidate.name)

        raise InvalidLifecycleEventError.dangling_target(
            raw, event.target_command, event.target_event, command.name
        )
