"""Tests for the error hierarchy."""

import io

import pytest
from loguru import logger

from deployctl.commands.registry import build_registry
from deployctl.errors import (
    DeployctlError,
    DispatchCancelledError,
    HandlerFailure,
    InvalidLifecycleEventError,
    MissingStateError,
    PluginError,
    ServiceNotFoundError,
    UnknownCommandError,
)


class TestDeployctlError:
    """Test the base error."""

    def test_generated_code(self):
        assert PluginError("x").error_code == "PLUGIN"
        assert DeployctlError("x", error_code="CUSTOM").error_code == "CUSTOM"

    def test_context(self):
        cause = ValueError("inner")
        error = DeployctlError("outer", cause=cause).with_context(stage="prod").with_suggestion("retry")

        data = error.to_dict()
        assert data["message"] == "outer"
        assert data["cause"] == "inner"
        assert data["context"]["technical_details"] == {"stage": "prod"}
        assert data["context"]["related_errors"][0]["type"] == "ValueError"

    def test_format_for_cli(self):
        error = UnknownCommandError.for_command("launch", ["deploy", "package"])

        text = error.format_for_cli()
        assert "Command 'launch' not found" in text
        assert "deployctl commands" in text
        assert "Technical Details" not in text
        assert "command: launch" in error.format_for_cli(verbose=True)

    def test_message_with_braces(self):
        error = DeployctlError("bad config {'a': 1}", recoverable=False)

        assert str(error) == "bad config {'a': 1}"

    def test_unknown_command_with_braces(self):
        with pytest.raises(UnknownCommandError) as exc_info:
            build_registry().resolve("{stage}")
        assert "{stage}" in str(exc_info.value)

    def test_log_record_carries_error_code(self):
        stream = io.StringIO()
        sink = logger.add(stream, level="DEBUG", format="{message} {extra[error_code]}")
        try:
            PluginError("plugin {name} failed", error_code="PLUGIN_LOAD_FAILED")
        finally:
            logger.remove(sink)

        assert "plugin {name} failed PLUGIN_LOAD_FAILED" in stream.getvalue()

    def test_format_for_cli_escapes_markup(self):
        error = DeployctlError("path [bold]x[/bold]", cause=ValueError("inner [red]"))

        text = error.format_for_cli(verbose=True)
        assert "\\[bold]" in text
        assert "Caused by:" in text
        assert "ValueError: inner \\[red]" in text


class TestHandlerFailure:
    """Test HandlerFailure."""

    def test_wrap(self):
        cause = RuntimeError("disk full")
        failure = HandlerFailure.wrap(cause, "package:createDeploymentArtifacts", "package")

        assert failure.cause is cause
        assert failure.error_code == "HOOK_FAILED"
        assert "package:createDeploymentArtifacts" in str(failure)
        assert failure.context.technical_details["plugin"] == "package"

    def test_root_cause_unwraps_nested_failures(self):
        cause = MissingStateError.not_found("pkg/service-state.json")
        inner = HandlerFailure.wrap(cause, "inner:hook")
        outer = HandlerFailure.wrap(inner, "outer:hook")

        assert outer.root_cause is cause

    def test_cancelled_is_a_handler_failure(self):
        error = DispatchCancelledError.at("before:deploy:deploy", "interrupted")

        assert isinstance(error, HandlerFailure)
        assert error.root_cause is error
        assert str(error) == "Dispatch cancelled before 'before:deploy:deploy': interrupted"


class TestFactories:
    """Test error factory methods."""

    def test_lifecycle_errors_not_recoverable(self):
        error = InvalidLifecycleEventError.dangling_target(
            "deprecated#old->package:gone", "package", "gone", "deploy"
        )

        assert not error.recoverable
        assert error.error_code == "LIFECYCLE_DANGLING_TARGET"
        assert error.context.technical_details["target_event"] == "gone"

    def test_service_not_found_is_configuration_error(self, tmp_path):
        error = ServiceNotFoundError.for_command("package", [tmp_path / "serverless.yml"])

        assert error.context.technical_details["searched"] == [str(tmp_path / "serverless.yml")]
        assert "--config" in error.context.suggestions[0]
