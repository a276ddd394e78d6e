"""Built-in packaging plugin.

Zips the service directory into deployment artifacts and records what it
produced in ``service-state.json`` for deploy-time validation.
"""

import asyncio
import fnmatch
import zipfile
from pathlib import Path
from typing import Dict, List

from loguru import logger

from deployctl.config.schemas import ServiceConfig
from deployctl.deploy.state import STATE_FILE_NAME, DeploymentState, StateStore
from deployctl.deploy.validate import DeploymentValidator
from deployctl.errors import ConfigurationError, ServiceNotFoundError
from deployctl.pipeline.hooks import HookContext
from deployctl.plugins.base import HookSpec, Plugin

# Excluded unless a pattern re-includes them
DEFAULT_EXCLUDES = [".git/**", ".gitignore", ".DS_Store", "*__pycache__*", ".env"]


def is_included(relative: str, patterns: List[str]) -> bool:
    """Apply ``patterns`` in order; ``!glob`` excludes, ``glob`` re-includes."""
    included = not any(fnmatch.fnmatch(relative, glob) for glob in DEFAULT_EXCLUDES)
    for pattern in patterns:
        if pattern.startswith("!"):
            if fnmatch.fnmatch(relative, pattern[1:]):
                included = False
        elif fnmatch.fnmatch(relative, pattern):
            included = True
    return included


def collect_files(service_dir: Path, exclude_dirs: List[Path], patterns: List[str]) -> List[Path]:
    """Files under ``service_dir`` that belong in an artifact, sorted."""
    files = []
    for path in sorted(service_dir.rglob("*")):
        if not path.is_file():
            continue
        if any(path == d or d in path.parents for d in exclude_dirs):
            continue
        if is_included(path.relative_to(service_dir).as_posix(), patterns):
            files.append(path)
    return files


def write_zip(target: Path, files: List[Path], root: Path) -> Path:
    """Write ``files`` into ``target`` with paths relative to ``root``."""
    target.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(target, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for path in files:
            archive.write(path, path.relative_to(root).as_posix())
    logger.debug(f"Wrote {target} ({len(files)} files)")
    return target


def check_package_dir(package_dir: Path, service_dir: Path) -> None:
    """Refuse a packaging directory that is the service directory or one of its parents."""
    target = package_dir.resolve()
    service = service_dir.resolve()
    if target == service or target in service.parents:
        raise ConfigurationError(
            f"Packaging directory {package_dir} contains the service directory",
            config_path=package_dir,
            error_code="PACKAGE_DIR_UNSAFE",
        ).with_suggestion("Package into a dedicated directory, e.g. '--package .deployctl'")


def is_package_output(path: Path) -> bool:
    """Files the packaging step writes: zip artifacts and the state file."""
    return path.is_file() and (path.suffix == ".zip" or path.name == STATE_FILE_NAME)


def remove_package_output(package_dir: Path) -> List[Path]:
    """Delete previous packaging output; the directory goes only once it is empty."""
    if not package_dir.is_dir():
        return []
    removed = [path for path in sorted(package_dir.iterdir()) if is_package_output(path)]
    for path in removed:
        path.unlink()
    if not any(package_dir.iterdir()):
        package_dir.rmdir()
    return removed


class PackagePlugin(Plugin):
    """Creates deployment artifacts for ``package`` and ``deploy``."""

    name = "package"
    description = "Packages the service into zip artifacts"

    def get_hooks(self) -> Dict[str, HookSpec]:
        return {
            "package:cleanup": self.cleanup,
            "package:createDeploymentArtifacts": self.create_deployment_artifacts,
        }

    def uses_prebuilt_package(self, ctx: HookContext) -> bool:
        """``deploy --package <dir>`` deploys a package built earlier."""
        return ctx.command == "deploy" and bool(ctx.option("package"))

    def cleanup(self, ctx: HookContext) -> None:
        """Remove the artifacts and state of a previous packaging run."""
        if self.uses_prebuilt_package(ctx):
            logger.debug("Using pre-built package, skipping cleanup")
            return
        package_dir = self.context.package_dir_for(ctx)
        check_package_dir(package_dir, self.context.service_dir)
        for path in remove_package_output(package_dir):
            logger.debug(f"Removed {path}")

    async def create_deployment_artifacts(self, ctx: HookContext) -> None:
        """Zip the service and persist the deployment state."""
        if self.uses_prebuilt_package(ctx):
            logger.info(f"Using pre-built package at {ctx.option('package')}")
            return
        service = self.service
        if service is None:
            raise ServiceNotFoundError.for_command(ctx.command, [self.context.service_dir])

        package_dir = self.context.package_dir_for(ctx)
        state = await asyncio.to_thread(self.package, service, package_dir)
        ctx.set("deployment_state", state)
        ctx.set("package_dir", package_dir)
        logger.info(f"Packaged service '{service.service}' into {package_dir}")

    def package(self, service: ServiceConfig, package_dir: Path) -> DeploymentState:
        """Build artifacts for ``service`` into ``package_dir`` and save the state."""
        service_dir = self.context.service_dir
        check_package_dir(package_dir, service_dir)
        state = DeploymentState.from_service(
            service,
            artifact_directory_name=self._artifact_directory_name(package_dir),
            artifact=service.package.artifact,
        )

        whole_service_needed = False
        for function_name, function in service.functions.items():
            if function.image:
                continue
            if DeploymentValidator.packaged_individually(state, function):
                if function.artifact:
                    continue
                patterns = service.package.patterns + (
                    function.package.patterns if function.package else []
                )
                files = collect_files(service_dir, [package_dir], patterns)
                write_zip(package_dir / f"{function_name}.zip", files, service_dir)
            else:
                whole_service_needed = True

        if whole_service_needed and not service.package.artifact:
            files = collect_files(service_dir, [package_dir], service.package.patterns)
            write_zip(package_dir / f"{service.service}.zip", files, service_dir)

        StateStore(package_dir, self.context.fs).save(state)
        return state

    def _artifact_directory_name(self, package_dir: Path) -> str:
        try:
            return package_dir.relative_to(self.context.service_dir).as_posix()
        except ValueError:
            return package_dir.as_posix()
