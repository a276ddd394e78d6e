"""Deployment precondition validation.

Runs inside the deploy pipeline, before anything is sent to the provider:
the packaging step must have left a state file behind, and every artifact
that state points at must exist.
"""

from pathlib import PurePosixPath
from typing import List, Tuple

from loguru import logger

from deployctl.config.schemas import FunctionConfig
from deployctl.deploy.state import DeploymentState, FileSystem, PathLike, StateStore
from deployctl.errors import MissingArtifactError

# API Gateway caps synchronous integrations at this many seconds
API_GATEWAY_TIMEOUT = 30


def _join(directory: str, file_name: str) -> str:
    return str(PurePosixPath(directory) / file_name)


class DeploymentValidator:
    """Checks that a deployment has what it needs.

    Existence checks go through the ``FileSystem`` port, in function order;
    the validator never writes.
    """

    def __init__(self, fs: FileSystem):
        self.fs = fs

    def validate_package(self, package_dir: PathLike) -> DeploymentState:
        """Load the state from ``package_dir`` and validate it.

        Raises:
            MissingStateError: No state file in ``package_dir``
            MissingArtifactError: An expected artifact is absent
        """
        state = StateStore(package_dir, self.fs).load()
        self.validate(state)
        return state

    def validate(self, state: DeploymentState) -> None:
        """Validate artifacts of an already loaded state.

        Raises:
            MissingArtifactError: An expected artifact is absent
        """
        service_name = state.service.name
        functions = state.service.functions
        if not functions:
            logger.debug(f"Service '{service_name}' has no functions; nothing to check")
            return

        service_artifact_checked = False
        for function_name, function in functions.items():
            if function.image:
                logger.debug(f"Skipping artifact check for image function '{function_name}'")
                continue

            if self.packaged_individually(state, function):
                path = self.function_artifact_path(state, function_name, function)
                logger.debug(f"Checking artifact of '{function_name}': {path}")
                if not self.fs.exists(path):
                    raise MissingArtifactError.for_function(function_name, path)
            elif not service_artifact_checked:
                path = self.service_artifact_path(state)
                logger.debug(f"Checking service artifact: {path}")
                if not self.fs.exists(path):
                    raise MissingArtifactError.for_service(service_name, path)
                service_artifact_checked = True

        for function_name, timeout in self.api_gateway_timeouts(state):
            logger.warning(
                f"Function {function_name} has timeout of {timeout} seconds, however, "
                f"it's attached to API Gateway so it's automatically limited to "
                f"{API_GATEWAY_TIMEOUT} seconds."
            )

    @staticmethod
    def packaged_individually(state: DeploymentState, function: FunctionConfig) -> bool:
        """Effective packaging mode of one function.

        The function's own setting wins. Otherwise a function is packaged
        individually only when the service is, and no service-level artifact
        overrides it.
        """
        if function.individually is not None:
            return function.individually
        return state.package.individually and not state.package.artifact

    @staticmethod
    def function_artifact_path(
        state: DeploymentState,
        function_name: str,
        function: FunctionConfig,
    ) -> str:
        if function.artifact:
            return function.artifact
        return _join(state.package.artifact_directory_name, f"{function_name}.zip")

    @staticmethod
    def service_artifact_path(state: DeploymentState) -> str:
        if state.package.artifact:
            return state.package.artifact
        return _join(state.package.artifact_directory_name, f"{state.service.name}.zip")

    @staticmethod
    def api_gateway_timeouts(state: DeploymentState) -> List[Tuple[str, int]]:
        """Functions whose timeout exceeds what a synchronous API Gateway event allows."""
        offenders = []
        for function_name, function in state.service.functions.items():
            if not function.timeout or function.timeout <= API_GATEWAY_TIMEOUT:
                continue
            for event in function.events:
                http = event.get("http")
                if http is None:
                    continue
                if isinstance(http, dict) and http.get("async"):
                    continue
                offenders.append((function_name, function.timeout))
                break
        return offenders


def validate_deployment(
    state: DeploymentState,
    fs: FileSystem,
) -> None:
    """Validate ``state``'s artifacts against ``fs``."""
    DeploymentValidator(fs).validate(state)
