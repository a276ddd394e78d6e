"""Base error class for deployctl.

Every error carries an ``ErrorContext``: technical details for debugging,
suggestions and recovery actions shown to the user, and the exceptions that
led to it.
"""

from __future__ import annotations

import traceback
from datetime import datetime
from typing import Any, Dict, List, Optional, TypeVar

from loguru import logger
from pydantic import BaseModel, Field
from rich.markup import escape


class ErrorContext(BaseModel):
    """Details attached to an error."""

    timestamp: datetime = Field(default_factory=datetime.now)
    user_message: Optional[str] = None
    technical_details: Dict[str, Any] = Field(default_factory=dict)
    suggestions: List[str] = Field(default_factory=list)
    recovery_actions: List[str] = Field(default_factory=list)
    related_errors: List[Dict[str, Any]] = Field(default_factory=list)

    def add_suggestion(self, suggestion: str) -> None:
        self.suggestions.append(suggestion)

    def add_recovery_action(self, action: str) -> None:
        self.recovery_actions.append(action)

    def add_technical_detail(self, key: str, value: Any) -> None:
        self.technical_details[key] = value

    def add_related_error(self, error: BaseException) -> None:
        """Record an exception that caused this one."""
        self.related_errors.append({
            "type": type(error).__name__,
            "message": str(error),
            "summary": "".join(traceback.format_exception_only(type(error), error)).strip(),
        })


T = TypeVar("T", bound="DeployctlError")


class DeployctlError(Exception):
    """Base exception class for deployctl."""

    def __init__(
        self,
        message: str,
        *,
        context: Optional[ErrorContext] = None,
        cause: Optional[BaseException] = None,
        error_code: Optional[str] = None,
        recoverable: bool = True,
    ):
        """Initialize the error.

        Args:
            message: Human-readable error message
            context: Error context, a fresh one when omitted
            cause: Original exception that caused this error
            error_code: Unique error code for programmatic handling
            recoverable: Whether the user can fix this and re-run
        """
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.cause = cause
        self.error_code = error_code or self._generate_error_code()
        self.recoverable = recoverable

        self.context.user_message = message
        if cause:
            self.context.add_related_error(cause)

        self._log_error()

    def _generate_error_code(self) -> str:
        """Generate an error code from the class name."""
        class_name = self.__class__.__name__
        # CamelCase -> UPPER_SNAKE_CASE
        code = ""
        for i, char in enumerate(class_name):
            if i > 0 and char.isupper() and class_name[i-1].islower():
                code += "_"
            code += char.upper()
        return code.replace("_ERROR", "")

    def _log_error(self) -> None:
        """Log the error; unrecoverable errors at ERROR level."""
        log_data: Dict[str, Any] = {
            "error_code": self.error_code,
            "recoverable": self.recoverable,
        }
        if self.context.technical_details:
            log_data["details"] = self.context.technical_details

        # Messages may contain braces, so they are never passed through str.format
        bound = logger.bind(**log_data)
        if self.recoverable:
            bound.debug(self.message)
        else:
            bound.error(self.message)

    def with_context(self: T, **kwargs: Any) -> T:
        """Add technical details to the error."""
        for key, value in kwargs.items():
            self.context.add_technical_detail(key, value)
        return self

    def with_suggestion(self: T, suggestion: str) -> T:
        self.context.add_suggestion(suggestion)
        return self

    def with_recovery(self: T, action: str) -> T:
        self.context.add_recovery_action(action)
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "recoverable": self.recoverable,
            "context": self.context.model_dump(mode="json"),
            "cause": str(self.cause) if self.cause else None,
        }

    def format_for_cli(self, verbose: bool = False) -> str:
        """Format the error as rich markup for the console.

        User-supplied text is escaped; verbose output adds technical details
        and the chain of causes.
        """
        lines = [
            f"[red]Error[/red]: {escape(self.message)}",
            f"[dim]Code: {self.error_code}[/dim]",
        ]

        if self.context.suggestions:
            lines.append("\n[yellow]Suggestions:[/yellow]")
            for suggestion in self.context.suggestions:
                lines.append(f"  • {escape(suggestion)}")

        if self.context.recovery_actions:
            lines.append("\n[green]Recovery Actions:[/green]")
            for action in self.context.recovery_actions:
                lines.append(f"  • {escape(action)}")

        if verbose and self.context.technical_details:
            lines.append("\n[dim]Technical Details:[/dim]")
            for key, value in self.context.technical_details.items():
                lines.append(f"  {key}: {escape(str(value))}")

        if verbose and self.context.related_errors:
            lines.append("\n[dim]Caused by:[/dim]")
            for related in self.context.related_errors:
                lines.append(f"  {escape(related['summary'])}")

        return "\n".join(lines)

    def __str__(self) -> str:
        return self.message
