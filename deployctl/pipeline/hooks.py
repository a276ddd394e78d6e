"""Hook table and the objects handlers receive and return."""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from loguru import logger

from deployctl.errors import PluginError


@dataclass
class HookContext:
    """Context shared by every handler of one dispatch."""

    command: str
    options: Dict[str, Any]
    hook_name: Optional[str] = None
    state: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Get state value."""
        return self.state.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set state value."""
        self.state[key] = value

    def option(self, name: str, default: Any = None) -> Any:
        return self.options.get(name, default)


@dataclass
class HookResult:
    """Optional return value of a handler.

    Returning ``HookResult.fail(...)`` is equivalent to raising: the
    dispatcher halts at the current hook name.
    """

    success: bool
    data: Any = None
    error: Optional[BaseException] = None

    @classmethod
    def ok(cls, data: Any = None) -> "HookResult":
        """Create successful result."""
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: Union[BaseException, str]) -> "HookResult":
        """Create failed result."""
        if isinstance(error, str):
            error = RuntimeError(error)
        return cls(success=False, error=error)


HookHandler = Callable[[HookContext], Union[None, HookResult, Awaitable[Optional[HookResult]]]]


@dataclass(frozen=True)
class HookRegistration:
    """One handler bound to one hook name."""

    hook_name: str
    handler: HookHandler
    plugin_name: Optional[str] = None

    @property
    def label(self) -> str:
        handler_name = getattr(self.handler, "__qualname__", repr(self.handler))
        if self.plugin_name:
            return f"{self.plugin_name}.{handler_name.rsplit('.', 1)[-1]}"
        return handler_name


class HookTable:
    """Ordered multimap of hook name to handlers.

    Registration order is preserved per hook name. Plugin loading fills the
    table and freezes it; dispatch only reads it.
    """

    def __init__(self):
        """Initialize an empty, writable table."""
        self._hooks: Dict[str, List[HookRegistration]] = {}
        self._frozen = False

    @classmethod
    def from_mapping(
        cls,
        mapping: Mapping[str, Union[HookHandler, Sequence[HookHandler]]],
    ) -> "HookTable":
        """Build a frozen table from ``{hook name: handler(s)}``."""
        table = cls()
        for name, handlers in mapping.items():
            if callable(handlers):
                handlers = [handlers]
            for handler in handlers:
                table.add(name, handler)
        return table.freeze()

    def add(
        self,
        hook_name: str,
        handler: HookHandler,
        plugin_name: Optional[str] = None,
    ) -> "HookTable":
        """Append a handler to ``hook_name``."""
        if self._frozen:
            raise PluginError(
                f"Cannot register '{hook_name}' after plugin loading has finished",
                plugin_name=plugin_name,
                error_code="HOOK_TABLE_FROZEN",
            )
        if not callable(handler):
            raise PluginError(
                f"Handler for '{hook_name}' is not callable: {handler!r}",
                plugin_name=plugin_name,
                error_code="HOOK_NOT_CALLABLE",
            )
        self._hooks.setdefault(hook_name, []).append(
            HookRegistration(hook_name, handler, plugin_name)
        )
        logger.debug(f"Registered hook {hook_name} from {plugin_name or 'anonymous'}")
        return self

    def freeze(self) -> "HookTable":
        """Make the table read-only."""
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def registrations(self, hook_name: str) -> Tuple[HookRegistration, ...]:
        return tuple(self._hooks.get(hook_name, ()))

    def handlers(self, hook_name: str) -> Tuple[HookHandler, ...]:
        return tuple(r.handler for r in self._hooks.get(hook_name, ()))

    def hook_names(self) -> List[str]:
        return list(self._hooks)

    def __contains__(self, hook_name: str) -> bool:
        return bool(self._hooks.get(hook_name))

    def __len__(self) -> int:
        return sum(len(registrations) for registrations in self._hooks.values())

    def __repr__(self) -> str:
        return f"HookTable(hooks={len(self._hooks)}, handlers={len(self)}, frozen={self._frozen})"
