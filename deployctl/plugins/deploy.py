"""Built-in deploy plugin: precondition validation before the deploy step."""

from typing import Dict

from loguru import logger

from deployctl.deploy.validate import DeploymentValidator
from deployctl.pipeline.hooks import HookContext
from deployctl.plugins.base import HookSpec, Plugin


class DeployPlugin(Plugin):
    """Checks packaged state and artifacts before anything is deployed."""

    name = "deploy"
    description = "Validates deployment preconditions"

    def get_hooks(self) -> Dict[str, HookSpec]:
        return {"before:deploy:deploy": self.validate}

    def validate(self, ctx: HookContext) -> None:
        """Fail the deploy if state or artifacts are missing.

        Raises:
            MissingStateError: Nothing was packaged into the package directory
            MissingArtifactError: An artifact the state points at is absent
        """
        package_dir = self.context.package_dir_for(ctx)
        state = DeploymentValidator(self.context.fs).validate_package(package_dir)
        ctx.set("deployment_state", state)
        logger.info(f"Deployment of '{state.service.name}' validated")
