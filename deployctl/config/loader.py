"""Service description loading."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml
from loguru import logger
from pydantic import ValidationError

from deployctl.config.schemas import DEFAULT_SERVICE_FILES, ServiceConfig
from deployctl.errors import ConfigurationError


class ServiceConfigLoader:
    """Finds and loads a service description file."""

    @staticmethod
    def candidates(directory: Path, names: Optional[Sequence[str]] = None) -> List[Path]:
        """Paths searched for a service file, in order."""
        return [directory / name for name in (names or DEFAULT_SERVICE_FILES)]

    @staticmethod
    def find_service_file(
        directory: Optional[Path] = None,
        names: Optional[Sequence[str]] = None,
    ) -> Optional[Path]:
        """Find a service file in ``directory`` (default: current directory).

        Returns:
            Path to the first existing service file, None otherwise
        """
        for path in ServiceConfigLoader.candidates(directory or Path.cwd(), names):
            if path.is_file():
                logger.debug(f"Found service file: {path}")
                return path
        return None

    @staticmethod
    def load_yaml(path: Path) -> Dict[str, Any]:
        """Load a YAML mapping.

        Raises:
            ConfigurationError: If the file cannot be read or is not a mapping
        """
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Failed to load service file {path}: {e}",
                config_path=path,
                cause=e,
                error_code="CONFIG_UNREADABLE",
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Service file {path} must contain a mapping",
                config_path=path,
                error_code="CONFIG_NOT_A_MAPPING",
            )
        logger.debug(f"Loaded service file {path}")
        return data

    @staticmethod
    def load_service(path: Path) -> ServiceConfig:
        """Load and validate a service description.

        Raises:
            ConfigurationError: If the file is unreadable or invalid
        """
        data = ServiceConfigLoader.load_yaml(path)
        try:
            return ServiceConfig.model_validate(data)
        except ValidationError as e:
            first = e.errors()[0]
            field_path = ".".join(str(part) for part in first["loc"])
            error = ConfigurationError(
                f"Invalid service file {path}: {field_path}: {first['msg']}",
                config_path=path,
                field_path=field_path,
                cause=e,
                error_code="CONFIG_INVALID",
            )
            error.with_suggestion("Every service file needs at least a 'service' name")
            raise error from e
