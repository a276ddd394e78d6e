"""Specific error types for deployctl modules."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional, Sequence

from .base import DeployctlError


class UnknownCommandError(DeployctlError):
    """A command path has no registered schema."""

    def __init__(
        self,
        message: str,
        *,
        command: Optional[str] = None,
        available: Optional[Sequence[str]] = None,
        **kwargs: Any,
    ):
        """Initialize unknown command error."""
        kwargs.setdefault("recoverable", False)
        super().__init__(message, **kwargs)
        self.command = command

        if command is not None:
            self.context.add_technical_detail("command", command)
        if available:
            self.context.add_technical_detail("available", list(available))

    @classmethod
    def for_command(cls, command: str, available: Sequence[str] = ()) -> "UnknownCommandError":
        """Create error for an unregistered command path."""
        error = cls(
            f"Command '{command}' not found",
            command=command,
            available=available,
            error_code="COMMAND_NOT_FOUND",
        )
        error.with_suggestion("Run 'deployctl commands' to list available commands")
        return error


class InvalidLifecycleEventError(DeployctlError):
    """Malformed lifecycle event or dangling deprecated redirect."""

    def __init__(
        self,
        message: str,
        *,
        command: Optional[str] = None,
        event: Optional[str] = None,
        **kwargs: Any,
    ):
        """Initialize lifecycle event error."""
        kwargs.setdefault("recoverable", False)
        super().__init__(message, **kwargs)
        self.command = command
        self.event = event

        if command is not None:
            self.context.add_technical_detail("command", command)
        if event is not None:
            self.context.add_technical_detail("event", event)

    @classmethod
    def malformed(cls, event: str, reason: str, command: Optional[str] = None) -> "InvalidLifecycleEventError":
        """Create error for a lifecycle event that cannot be decoded."""
        error = cls(
            f"Invalid lifecycle event '{event}': {reason}",
            command=command,
            event=event,
            error_code="LIFECYCLE_MALFORMED",
        )
        error.with_suggestion(
            "Deprecated events must look like 'deprecated#<old>-><command>:<event>'"
        )
        return error

    @classmethod
    def dangling_target(
        cls,
        event: str,
        target_command: str,
        target_event: str,
        command: Optional[str] = None,
    ) -> "InvalidLifecycleEventError":
        """Create error for a redirect whose target does not exist."""
        error = cls(
            f"Lifecycle event '{event}' redirects to '{target_command}:{target_event}' "
            f"which is not a registered lifecycle event",
            command=command,
            event=event,
            error_code="LIFECYCLE_DANGLING_TARGET",
        )
        error.context.add_technical_detail("target_command", target_command)
        error.context.add_technical_detail("target_event", target_event)
        return error


class InvalidOptionError(DeployctlError):
    """Bad flag value, unknown flag or missing required option."""

    def __init__(
        self,
        message: str,
        *,
        option: Optional[str] = None,
        command: Optional[str] = None,
        value: Any = None,
        **kwargs: Any,
    ):
        """Initialize option error."""
        super().__init__(message, **kwargs)
        self.option = option

        if option is not None:
            self.context.add_technical_detail("option", option)
        if command is not None:
            self.context.add_technical_detail("command", command)
        if value is not None:
            self.context.add_technical_detail("value", str(value))

    @classmethod
    def unknown(
        cls,
        option: str,
        command: Optional[str] = None,
        flag: Optional[str] = None,
    ) -> "InvalidOptionError":
        """Create error for a flag the command does not declare."""
        error = cls(
            f"Unrecognized option '{flag or '--' + option}'",
            option=option,
            command=command,
            error_code="OPTION_UNKNOWN",
        )
        if command:
            error.with_suggestion(f"Run 'deployctl hooks {command}' or check the command usage")
        return error

    @classmethod
    def missing_required(cls, option: str, command: Optional[str] = None) -> "InvalidOptionError":
        """Create error for a required option that was not passed."""
        error = cls(
            f"Missing required option '--{option}'",
            option=option,
            command=command,
            error_code="OPTION_REQUIRED",
        )
        error.with_suggestion(f"Pass '--{option} <value>'")
        return error

    @classmethod
    def invalid_value(
        cls,
        option: str,
        value: Any,
        expected: str,
        command: Optional[str] = None,
    ) -> "InvalidOptionError":
        """Create error for a value of the wrong type."""
        error = cls(
            f"Invalid value for '--{option}': expected {expected}",
            option=option,
            command=command,
            value=value,
            error_code="OPTION_INVALID_VALUE",
        )
        error.context.add_technical_detail("expected_type", expected)
        return error

    @classmethod
    def repeated(cls, option: str, command: Optional[str] = None) -> "InvalidOptionError":
        """Create error for a single-value option passed more than once."""
        return cls(
            f"Option '--{option}' may only be passed once",
            option=option,
            command=command,
            error_code="OPTION_REPEATED",
        )

    @classmethod
    def unexpected_argument(cls, argument: str, command: Optional[str] = None) -> "InvalidOptionError":
        """Create error for a positional token that belongs to no flag."""
        return cls(
            f"Unexpected argument '{argument}'",
            command=command,
            value=argument,
            error_code="OPTION_UNEXPECTED_ARGUMENT",
        )


class ConfigurationError(DeployctlError):
    """Configuration-related errors."""

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[Path] = None,
        field_path: Optional[str] = None,
        **kwargs: Any,
    ):
        """Initialize configuration error."""
        super().__init__(message, **kwargs)

        if config_path:
            self.context.add_technical_detail("config_path", str(config_path))
        if field_path:
            self.context.add_technical_detail("field_path", field_path)


class ServiceNotFoundError(ConfigurationError):
    """A command needs a service description but none was found."""

    @classmethod
    def for_command(cls, command: str, searched: List[Path]) -> "ServiceNotFoundError":
        """Create error for a service-dependent command run outside a service."""
        error = cls(
            f"Command '{command}' requires a service description but none was found",
            error_code="SERVICE_NOT_FOUND",
        )
        error.context.add_technical_detail("searched", [str(p) for p in searched])
        error.with_suggestion("Run the command from a service directory or pass --config")
        return error


class MissingStateError(DeployctlError):
    """No persisted deployment state from a previous packaging run."""

    def __init__(self, message: str, *, state_path: Optional[str] = None, **kwargs: Any):
        """Initialize missing state error."""
        super().__init__(message, **kwargs)
        self.state_path = state_path

        if state_path is not None:
            self.context.add_technical_detail("state_path", state_path)

    @classmethod
    def not_found(cls, state_path: str) -> "MissingStateError":
        """Create error for an absent state file."""
        error = cls(
            f"No deployment state found at {state_path}: "
            "deploy the service before attempting this operation",
            state_path=state_path,
            error_code="STATE_NOT_FOUND",
        )
        error.with_suggestion("Run 'deployctl run package' first")
        error.with_recovery("Check the --package path points at a packaging output directory")
        return error


class MissingArtifactError(DeployctlError):
    """A packaged artifact required for deployment is absent."""

    def __init__(
        self,
        message: str,
        *,
        artifact_path: Optional[str] = None,
        function_name: Optional[str] = None,
        **kwargs: Any,
    ):
        """Initialize missing artifact error."""
        super().__init__(message, **kwargs)
        self.artifact_path = artifact_path
        self.function_name = function_name

        if artifact_path is not None:
            self.context.add_technical_detail("artifact_path", artifact_path)
        if function_name is not None:
            self.context.add_technical_detail("function", function_name)

    @classmethod
    def for_function(cls, function_name: str, artifact_path: str) -> "MissingArtifactError":
        """Create error for a missing per-function artifact."""
        error = cls(
            f"No artifact found for function '{function_name}' at {artifact_path}",
            artifact_path=artifact_path,
            function_name=function_name,
            error_code="ARTIFACT_FUNCTION_MISSING",
        )
        error.with_suggestion("Package the service again before deploying")
        return error

    @classmethod
    def for_service(cls, service_name: str, artifact_path: str) -> "MissingArtifactError":
        """Create error for a missing whole-service artifact."""
        error = cls(
            f"No artifact found for service '{service_name}' at {artifact_path}",
            artifact_path=artifact_path,
            error_code="ARTIFACT_SERVICE_MISSING",
        )
        error.with_suggestion("Package the service again before deploying")
        return error


class HandlerFailure(DeployctlError):
    """A plugin hook handler failed; carries the hook name it failed in."""

    def __init__(
        self,
        message: str,
        *,
        hook_name: str,
        plugin_name: Optional[str] = None,
        **kwargs: Any,
    ):
        """Initialize handler failure."""
        super().__init__(message, **kwargs)
        self.hook_name = hook_name
        self.plugin_name = plugin_name

        self.context.add_technical_detail("hook", hook_name)
        if plugin_name:
            self.context.add_technical_detail("plugin", plugin_name)

    @classmethod
    def wrap(
        cls,
        cause: BaseException,
        hook_name: str,
        plugin_name: Optional[str] = None,
    ) -> "HandlerFailure":
        """Wrap whatever a handler raised or reported."""
        return cls(
            f"Hook '{hook_name}' failed: {cause}",
            hook_name=hook_name,
            plugin_name=plugin_name,
            cause=cause,
            error_code="HOOK_FAILED",
        )

    @property
    def root_cause(self) -> BaseException:
        """Innermost cause, unwrapping nested handler failures."""
        cause: BaseException = self
        while isinstance(cause, HandlerFailure) and cause.cause is not None:
            cause = cause.cause
        return cause


class DispatchCancelledError(HandlerFailure):
    """Dispatch was cancelled at a hook boundary."""

    @classmethod
    def at(cls, hook_name: str, reason: Optional[str] = None) -> "DispatchCancelledError":
        """Create error for a cancellation observed before ``hook_name``."""
        message = f"Dispatch cancelled before '{hook_name}'"
        if reason:
            message += f": {reason}"
        return cls(message, hook_name=hook_name, error_code="DISPATCH_CANCELLED")


class PluginError(DeployctlError):
    """Plugin-related errors."""

    def __init__(
        self,
        message: str,
        *,
        plugin_name: Optional[str] = None,
        plugin_path: Optional[Path] = None,
        **kwargs: Any,
    ):
        """Initialize plugin error."""
        super().__init__(message, **kwargs)

        if plugin_name:
            self.context.add_technical_detail("plugin_name", plugin_name)
        if plugin_path:
            self.context.add_technical_detail("plugin_path", str(plugin_path))

    @classmethod
    def load_failed(
        cls,
        plugin_name: str,
        reason: str,
        plugin_path: Optional[Path] = None,
    ) -> "PluginError":
        """Create error for plugin load failure."""
        error = cls(
            f"Failed to load plugin '{plugin_name}': {reason}",
            plugin_name=plugin_name,
            plugin_path=plugin_path,
            error_code="PLUGIN_LOAD_FAILED",
        )
        error.with_suggestion("Check the plugin's imports and dependencies")
        error.with_suggestion("Ensure the module defines a Plugin subclass or create_plugin()")
        return error
