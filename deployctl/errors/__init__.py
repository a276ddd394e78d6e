"""Error handling framework for deployctl.

This module provides:
- Rich error types with context and recovery suggestions
- One error kind per failure the engine can report, from schema defects
  (unknown commands, malformed lifecycle events) to deploy preconditions
  (missing state, missing artifacts) and plugin handler failures
"""

from .base import DeployctlError, ErrorContext
from .types import (
    ConfigurationError,
    DispatchCancelledError,
    HandlerFailure,
    InvalidLifecycleEventError,
    InvalidOptionError,
    MissingArtifactError,
    MissingStateError,
    PluginError,
    ServiceNotFoundError,
    UnknownCommandError,
)

__all__ = [
    "DeployctlError",
    "ErrorContext",
    "UnknownCommandError",
    "InvalidLifecycleEventError",
    "InvalidOptionError",
    "ConfigurationError",
    "ServiceNotFoundError",
    "MissingStateError",
    "MissingArtifactError",
    "HandlerFailure",
    "DispatchCancelledError",
    "PluginError",
]
