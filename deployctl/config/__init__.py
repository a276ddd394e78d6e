"""Configuration for deployctl."""

from .loader import ServiceConfigLoader
from .schemas import (
    DEFAULT_SERVICE_FILES,
    DeployctlSettings,
    FunctionConfig,
    FunctionPackage,
    PackageConfig,
    ProviderConfig,
    ServiceConfig,
)

__all__ = [
    "DEFAULT_SERVICE_FILES",
    "DeployctlSettings",
    "FunctionConfig",
    "FunctionPackage",
    "PackageConfig",
    "ProviderConfig",
    "ServiceConfig",
    "ServiceConfigLoader",
]
