"""Lifecycle event names and hook-name helpers.

A lifecycle event base name is either a plain identifier (``"deploy"``) or a
deprecated redirect ``"deprecated#<old>-><command>:<event>"`` pointing at an
event of another command. Redirect targets are split on their last ``:``, so
``deprecated#x->deploy:function:deploy`` targets event ``deploy`` of the
``deploy function`` command.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from deployctl.errors import InvalidLifecycleEventError

DEPRECATED_PREFIX = "deprecated#"
REDIRECT_ARROW = "->"


@dataclass(frozen=True)
class PlainEvent:
    """A lifecycle event owned by the command itself."""

    name: str


@dataclass(frozen=True)
class DeprecatedEvent:
    """An old event name redirected to another command's event."""

    old_name: str
    target_command: str
    target_event: str

    @property
    def name(self) -> str:
        return self.old_name

    @property
    def target_prefix(self) -> str:
        return ":".join(self.target_command.split())


LifecycleEvent = Union[PlainEvent, DeprecatedEvent]


def _check_identifier(raw: str, value: str, what: str, command: Optional[str]) -> None:
    if not value:
        raise InvalidLifecycleEventError.malformed(raw, f"empty {what}", command)
    if ":" in value or any(ch.isspace() for ch in value):
        raise InvalidLifecycleEventError.malformed(
            raw, f"{what} '{value}' must not contain ':' or whitespace", command
        )


def parse_lifecycle_event(raw: str, command: Optional[str] = None) -> LifecycleEvent:
    """Decode a lifecycle event base name.

    Args:
        raw: Base name as declared in the command schema
        command: Owning command, for error context

    Raises:
        InvalidLifecycleEventError: If the name is empty or the redirect
            syntax is incomplete
    """
    if not isinstance(raw, str) or not raw:
        raise InvalidLifecycleEventError.malformed(str(raw), "empty event name", command)

    if not raw.startswith(DEPRECATED_PREFIX):
        _check_identifier(raw, raw, "event name", command)
        return PlainEvent(raw)

    body = raw[len(DEPRECATED_PREFIX):]
    if REDIRECT_ARROW not in body:
        raise InvalidLifecycleEventError.malformed(raw, "missing '->'", command)
    old_name, target = body.split(REDIRECT_ARROW, 1)
    _check_identifier(raw, old_name, "deprecated event name", command)

    if ":" not in target:
        raise InvalidLifecycleEventError.malformed(raw, "missing ':' in redirect target", command)
    target_command, target_event = target.rsplit(":", 1)
    target_command = " ".join(target_command.replace(":", " ").split())
    if not target_command:
        raise InvalidLifecycleEventError.malformed(raw, "empty target command", command)
    _check_identifier(raw, target_event, "target event", command)

    return DeprecatedEvent(old_name, target_command, target_event)


def hook_name(phase: str, prefix: str, event: str) -> str:
    """Fully-qualified hook name; the main phase has no phase segment."""
    if phase:
        return f"{phase}:{prefix}:{event}"
    return f"{prefix}:{event}"


def hook_names(prefix: str, event: str) -> Tuple[str, str, str]:
    """before, main and after hook names of one event, in dispatch order."""
    return (
        hook_name("before", prefix, event),
        hook_name("", prefix, event),
        hook_name("after", prefix, event),
    )


def command_hook_prefix(command_path: str) -> str:
    """``"deploy function"`` -> ``"deploy:function"``."""
    return ":".join(command_path.replace(":", " ").split())
