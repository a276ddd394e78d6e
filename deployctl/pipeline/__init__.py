"""Lifecycle expansion and hook dispatch."""

from .dispatcher import (
    CancellationToken,
    DispatchListener,
    DispatchRun,
    DispatchState,
    HookDispatcher,
)
from .events import (
    DeprecatedEvent,
    LifecycleEvent,
    PlainEvent,
    command_hook_prefix,
    hook_name,
    hook_names,
    parse_lifecycle_event,
)
from .expander import LifecycleExpander
from .hooks import HookContext, HookHandler, HookRegistration, HookResult, HookTable

__all__ = [
    # Events
    "PlainEvent",
    "DeprecatedEvent",
    "LifecycleEvent",
    "parse_lifecycle_event",
    "hook_name",
    "hook_names",
    "command_hook_prefix",
    # Expansion
    "LifecycleExpander",
    # Hooks
    "HookContext",
    "HookHandler",
    "HookRegistration",
    "HookResult",
    "HookTable",
    # Dispatch
    "CancellationToken",
    "DispatchListener",
    "DispatchRun",
    "DispatchState",
    "HookDispatcher",
]
