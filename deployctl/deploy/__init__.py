"""Deployment state and deploy-time validation."""

from .state import (
    STATE_FILE_NAME,
    DeploymentState,
    FileSystem,
    LocalFileSystem,
    StatePackage,
    StateService,
    StateStore,
)
from .validate import API_GATEWAY_TIMEOUT, DeploymentValidator, validate_deployment

__all__ = [
    "API_GATEWAY_TIMEOUT",
    "STATE_FILE_NAME",
    "DeploymentState",
    "DeploymentValidator",
    "FileSystem",
    "LocalFileSystem",
    "StatePackage",
    "StateService",
    "StateStore",
    "validate_deployment",
]
