"""Tests for option parsing against command schemas."""

import click
import pytest

from deployctl.commands.options import build_click_command, parse_options, validate_options
from deployctl.errors import InvalidOptionError


class TestBuildClickCommand:
    """Test the click command built from a schema."""

    def test_parameters_mirror_options(self, registry):
        spec = registry.get("deploy function")

        command, names = build_click_command(spec)

        options = {names[p.name]: p for p in command.params if p.name in names}
        assert set(options) == set(spec.options)
        assert options["function"].required
        assert "-f" in options["function"].opts
        assert options["force"].is_flag
        assert "--no-force" in options["force"].secondary_opts
        assert options["param"].multiple

    def test_extra_arguments_collected(self, registry):
        command, _ = build_click_command(registry.get("deploy"))

        assert isinstance(command.params[-1], click.Argument)


class TestParseOptions:
    """Test option parsing against the deploy function schema."""

    @pytest.fixture
    def spec(self, registry):
        return registry.get("deploy function")

    def test_shortcut_to_long_name(self, spec):
        options = parse_options(["-f", "create", "-s", "prod"], spec)
        assert options == {"function": "create", "stage": "prod"}

    def test_value_forms(self, spec):
        options = parse_options(["--function=create", "-r=eu-west-1", "--stage", "prod"], spec)
        assert options == {"function": "create", "region": "eu-west-1", "stage": "prod"}

    def test_value_starting_with_dash(self, registry):
        options = parse_options(["--param", "-x", "--region", "-1"], registry.get("deploy"))
        assert options == {"param": ["-x"], "region": "-1"}

    def test_boolean_flags(self, spec):
        assert parse_options(["-f", "x", "--force"], spec)["force"] is True
        assert parse_options(["-f", "x", "--no-force"], spec)["force"] is False
        assert parse_options(["-f", "x", "-u"], spec)["update-config"] is True
        assert "force" not in parse_options(["-f", "x"], spec)

    def test_boolean_rejects_value(self, spec):
        with pytest.raises(InvalidOptionError) as exc_info:
            parse_options(["-f", "x", "--force=yes"], spec)

        assert exc_info.value.option == "force"
        assert exc_info.value.error_code == "OPTION_INVALID_VALUE"

    def test_stray_argument(self, spec):
        with pytest.raises(InvalidOptionError) as exc_info:
            parse_options(["-f", "x", "--force", "yes"], spec)
        assert exc_info.value.error_code == "OPTION_UNEXPECTED_ARGUMENT"

    def test_string_needs_value(self, spec):
        with pytest.raises(InvalidOptionError) as exc_info:
            parse_options(["--function"], spec)

        assert exc_info.value.option == "function"
        assert exc_info.value.error_code == "OPTION_INVALID_VALUE"

    def test_unknown_flag(self, spec):
        with pytest.raises(InvalidOptionError) as exc_info:
            parse_options(["-f", "x", "--bogus", "1"], spec)

        assert exc_info.value.option == "bogus"
        assert exc_info.value.error_code == "OPTION_UNKNOWN"

    def test_unknown_shortcut(self, spec):
        with pytest.raises(InvalidOptionError) as exc_info:
            parse_options(["-f", "x", "-z"], spec)

        assert exc_info.value.option == "z"
        assert "'-z'" in str(exc_info.value)

    def test_missing_required(self, spec):
        with pytest.raises(InvalidOptionError) as exc_info:
            parse_options(["--stage", "dev"], spec)

        assert exc_info.value.option == "function"
        assert exc_info.value.error_code == "OPTION_REQUIRED"

    def test_repeated_single_value(self, spec):
        """Long name and shortcut count as the same option."""
        with pytest.raises(InvalidOptionError) as exc_info:
            parse_options(["-f", "a", "--function", "b"], spec)
        assert exc_info.value.error_code == "OPTION_REPEATED"

    def test_multiple_option(self, registry):
        options = parse_options(["--param", "a=1", "--param", "b=2"], registry.get("deploy"))
        assert options == {"param": ["a=1", "b=2"]}

    def test_hyphenated_option_name(self, registry):
        options = parse_options(["--aws-profile", "ci"], registry.get("deploy"))
        assert options == {"aws-profile": "ci"}


class TestValidateOptions:
    """Test validation of already-collected flags."""

    def test_raw_flags(self, registry):
        spec = registry.get("deploy function")

        options = validate_options({"function": "create", "force": True, "param": ["a=1"]}, spec)

        assert options == {"function": "create", "force": True, "param": ["a=1"]}

    def test_unknown_raw_flag(self, registry):
        with pytest.raises(InvalidOptionError) as exc_info:
            validate_options({"function": "x", "bogus": "1"}, registry.get("deploy function"))
        assert exc_info.value.option == "bogus"
