"""Hook dispatcher: runs plugin handlers in lifecycle order."""

import asyncio
import inspect
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

from loguru import logger

from deployctl.commands.registry import CommandRegistry
from deployctl.errors import DispatchCancelledError, HandlerFailure, InvalidLifecycleEventError
from deployctl.pipeline.expander import LifecycleExpander
from deployctl.pipeline.hooks import HookContext, HookRegistration, HookResult, HookTable


class DispatchState(Enum):
    """Dispatch run states."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


_TRANSITIONS = {
    DispatchState.NOT_STARTED: {DispatchState.RUNNING},
    DispatchState.RUNNING: {DispatchState.COMPLETED, DispatchState.FAILED},
    DispatchState.COMPLETED: set(),
    DispatchState.FAILED: set(),
}


class CancellationToken:
    """External cancellation signal, observed between hook names."""

    def __init__(self):
        self._cancelled = False
        self.reason: Optional[str] = None

    def cancel(self, reason: Optional[str] = None) -> None:
        """Request cancellation; the current handler still runs to completion."""
        self._cancelled = True
        self.reason = reason

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass
class DispatchRun:
    """One dispatch of one command. Terminal states are final."""

    command: str
    hooks: Tuple[str, ...]
    state: DispatchState = DispatchState.NOT_STARTED
    current_index: Optional[int] = None
    failed_hook: Optional[str] = None
    cause: Optional[BaseException] = None
    error: Optional[HandlerFailure] = None
    invoked: List[str] = field(default_factory=list)
    context: Optional[HookContext] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    def transition(self, new_state: DispatchState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Illegal dispatch transition {self.state.value} -> {new_state.value}"
            )
        self.state = new_state
        if new_state is DispatchState.RUNNING:
            self.started_at = datetime.now()
        elif new_state in (DispatchState.COMPLETED, DispatchState.FAILED):
            self.finished_at = datetime.now()

    def fail(self, hook_name: str, cause: BaseException, error: HandlerFailure) -> None:
        self.transition(DispatchState.FAILED)
        self.failed_hook = hook_name
        self.cause = cause
        self.error = error

    @property
    def current_hook(self) -> Optional[str]:
        if self.current_index is None:
            return None
        return self.hooks[self.current_index]

    @property
    def is_terminal(self) -> bool:
        return self.state in (DispatchState.COMPLETED, DispatchState.FAILED)

    @property
    def duration(self) -> Optional[float]:
        if self.started_at is None or self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()


class DispatchListener(Protocol):
    """Observer notified before each hook name that has handlers."""

    def on_hook_start(self, run: DispatchRun, hook_name: str) -> None:
        ...


HookTableLike = Union[HookTable, Mapping[str, Any]]


class HookDispatcher:
    """Invokes plugin handlers for a command's hook names, in order.

    Hook names are strictly serialized and handlers of one hook name run in
    registration order, each awaited before the next starts. The first
    failure halts the run; nothing is retried.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        expander: Optional[LifecycleExpander] = None,
        listeners: Optional[Sequence[DispatchListener]] = None,
    ):
        """Initialize dispatcher.

        Args:
            registry: Command registry
            expander: Lifecycle expander (built from the registry if omitted)
            listeners: UI observers; they never influence control flow
        """
        self.registry = registry
        self.expander = expander or LifecycleExpander(registry)
        self.listeners: List[DispatchListener] = list(listeners or [])

    def add_listener(self, listener: DispatchListener) -> "HookDispatcher":
        self.listeners.append(listener)
        return self

    async def dispatch(
        self,
        command_path: str,
        options: Optional[Dict[str, Any]],
        hook_table: HookTableLike,
        *,
        cancel_token: Optional[CancellationToken] = None,
        last_hook: Optional[str] = None,
    ) -> DispatchRun:
        """Run every handler of ``command_path``'s lifecycle.

        Args:
            command_path: Command to run
            options: Validated options, passed to handlers via the context
            hook_table: Hook name to ordered handlers
            cancel_token: Checked before each hook name
            last_hook: Complete the run right after this hook name

        Returns:
            The completed run

        Raises:
            UnknownCommandError: Command not registered
            InvalidLifecycleEventError: Misconfigured lifecycle or unknown
                ``last_hook``, raised before any hook runs
            HandlerFailure: A handler failed; ``hook_name`` tells where
            DispatchCancelledError: Cancellation observed at a hook boundary
        """
        command = self.registry.resolve(command_path)
        hooks = self.expander.expand(command.name)
        if last_hook is not None and last_hook not in hooks:
            raise InvalidLifecycleEventError(
                f"'{last_hook}' is not a hook of '{command.name}'",
                command=command.name,
                event=last_hook,
                error_code="LIFECYCLE_UNKNOWN_HOOK",
            )

        table = hook_table if isinstance(hook_table, HookTable) else HookTable.from_mapping(hook_table)
        context = HookContext(command=command.name, options=dict(options or {}))
        run = DispatchRun(command=command.name, hooks=hooks, context=context)

        run.transition(DispatchState.RUNNING)
        logger.debug(f"Dispatching '{command.name}' through {len(hooks)} hooks")

        for index, name in enumerate(hooks):
            run.current_index = index

            if cancel_token is not None and cancel_token.cancelled:
                error = DispatchCancelledError.at(name, cancel_token.reason)
                run.fail(name, error, error)
                logger.warning(f"Dispatch of '{command.name}' cancelled before {name}")
                raise error

            registrations = table.registrations(name)
            if registrations:
                self._notify(run, name)
                context.hook_name = name
                for registration in registrations:
                    await self._invoke(run, registration, context)
                run.invoked.append(name)

            if name == last_hook:
                logger.debug(f"Stopping '{command.name}' after {name}")
                break

        run.transition(DispatchState.COMPLETED)
        logger.debug(f"Dispatch of '{command.name}' completed")
        return run

    def run(self, *args: Any, **kwargs: Any) -> DispatchRun:
        """Synchronous wrapper around :meth:`dispatch`."""
        return asyncio.run(self.dispatch(*args, **kwargs))

    async def _invoke(
        self,
        run: DispatchRun,
        registration: HookRegistration,
        context: HookContext,
    ) -> None:
        name = registration.hook_name
        logger.debug(f"Executing hook {registration.label} in {name}")
        try:
            result = registration.handler(context)
            if inspect.isawaitable(result):
                result = await result
        except asyncio.CancelledError:
            error = DispatchCancelledError.at(name, "task cancelled")
            run.fail(name, error, error)
            raise
        except Exception as e:
            failure = HandlerFailure.wrap(e, name, registration.plugin_name)
            run.fail(name, e, failure)
            logger.error(f"Hook {registration.label} failed in {name}: {e}")
            raise failure from e

        if isinstance(result, HookResult) and not result.success:
            cause = result.error or RuntimeError("handler reported failure")
            failure = HandlerFailure.wrap(cause, name, registration.plugin_name)
            run.fail(name, cause, failure)
            logger.error(f"Hook {registration.label} reported failure in {name}: {cause}")
            raise failure

    def _notify(self, run: DispatchRun, hook_name: str) -> None:
        for listener in self.listeners:
            try:
                listener.on_hook_start(run, hook_name)
            except Exception as e:
                logger.warning(f"Dispatch listener {listener!r} failed on {hook_name}: {e}")
