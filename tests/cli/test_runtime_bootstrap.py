"""Tests for resolving a command line into a runtime."""

from pathlib import Path

import pytest

from deployctl.bootstrap import create_runtime, load_environment, split_command_line
from deployctl.errors import (
    ConfigurationError,
    InvalidOptionError,
    ServiceNotFoundError,
    UnknownCommandError,
)


class TestSplitCommandLine:
    """Test split_command_line."""

    def test_words_then_flags(self):
        assert split_command_line(["deploy", "function", "-f", "a", "x"]) == (
            ["deploy", "function"],
            ["-f", "a", "x"],
        )

    def test_no_flags(self):
        assert split_command_line(["plugin", "list"]) == (["plugin", "list"], [])


class TestCreateRuntime:
    """Test create_runtime."""

    def test_resolves_command_and_options(self, settings, service_dir):
        runtime = create_runtime(["deploy", "-s", "prod", "--force"], settings=settings, cwd=service_dir)

        assert runtime.command.name == "deploy"
        assert runtime.options["stage"] == "prod"
        assert runtime.options["force"] is True
        assert runtime.environment.service.service == "orders"

    def test_multi_word_command(self, settings, service_dir):
        runtime = create_runtime(["deploy", "function", "-f", "create"], settings=settings, cwd=service_dir)

        assert runtime.command.name == "deploy function"
        assert runtime.options["function"] == "create"

    def test_no_command(self, settings, service_dir):
        with pytest.raises(UnknownCommandError) as exc_info:
            create_runtime(["--stage", "prod"], settings=settings, cwd=service_dir)
        assert exc_info.value.error_code == "COMMAND_MISSING"

    def test_unknown_command(self, settings, service_dir):
        with pytest.raises(UnknownCommandError):
            create_runtime(["launch"], settings=settings, cwd=service_dir)

    def test_leftover_words(self, settings, service_dir):
        with pytest.raises(UnknownCommandError) as exc_info:
            create_runtime(["package", "everything"], settings=settings, cwd=service_dir)
        assert exc_info.value.command == "package everything"

    def test_required_service_missing(self, settings, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()

        with pytest.raises(ServiceNotFoundError) as exc_info:
            create_runtime(["package"], settings=settings, cwd=empty)
        assert exc_info.value.error_code == "SERVICE_NOT_FOUND"

    def test_service_free_command_ignores_service_file(self, settings, tmp_path):
        """Commands that need no service never read the service file."""
        (tmp_path / "serverless.yml").write_text("service: [broken\n")

        runtime = create_runtime(["plugin", "list"], settings=settings, cwd=tmp_path)

        assert runtime.command.name == "plugin list"
        assert runtime.environment.service is None

    def test_invalid_service_file(self, settings, tmp_path):
        (tmp_path / "serverless.yml").write_text("service: [broken\n")

        with pytest.raises(ConfigurationError):
            create_runtime(["package"], settings=settings, cwd=tmp_path)

    def test_invalid_options(self, settings, service_dir):
        with pytest.raises(InvalidOptionError) as exc_info:
            create_runtime(["package", "--nope"], settings=settings, cwd=service_dir)
        assert exc_info.value.error_code == "OPTION_UNKNOWN"

    def test_plugin_commands_resolvable(self, settings, write_service, service_config):
        service_config["plugins"] = ["./greet.py"]
        directory = write_service(service_config)
        (directory / "greet.py").write_text(
            "from deployctl.plugins.base import Plugin\n"
            "\n"
            "\n"
            "class GreetPlugin(Plugin):\n"
            "    name = 'greet'\n"
            "\n"
            "    def get_commands(self):\n"
            "        return {'greet': {'lifecycleEvents': ['hello'], 'options': {'who': {}}}}\n"
            "\n"
            "    def get_hooks(self):\n"
            "        return {'greet:hello': lambda ctx: ctx.set('greeted', ctx.option('who'))}\n"
        )

        runtime = create_runtime(["greet", "--who", "world"], settings=settings, cwd=directory)
        run = runtime.environment.dispatcher().run(runtime.command.name, runtime.options, runtime.environment.hook_table)

        assert run.context.get("greeted") == "world"


class TestLoadEnvironment:
    """Test load_environment."""

    def test_explicit_config_path(self, settings, write_service, service_config):
        directory = write_service(service_config, name="custom.yml")

        environment = load_environment(settings, cwd=directory, config_path=Path("custom.yml"))

        assert environment.service_file == directory / "custom.yml"
        assert environment.service_dir == directory
        assert "package" in environment.plugins

    def test_explicit_config_path_missing(self, settings, tmp_path):
        with pytest.raises(ServiceNotFoundError) as exc_info:
            load_environment(settings, cwd=tmp_path, config_path=Path("missing.yml"))
        assert exc_info.value.error_code == "SERVICE_FILE_MISSING"

    def test_without_service(self, settings, tmp_path):
        environment = load_environment(settings, cwd=tmp_path)

        assert environment.service is None
        assert environment.hook_table.frozen
