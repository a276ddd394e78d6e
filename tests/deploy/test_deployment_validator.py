"""Tests for deployment precondition validation."""

import pytest
from loguru import logger

from deployctl.deploy.state import STATE_FILE_NAME, DeploymentState
from deployctl.deploy.validate import DeploymentValidator, validate_deployment
from deployctl.errors import MissingArtifactError, MissingStateError

PACKAGE_DIR = ".deployctl"
STATE_PATH = f"{PACKAGE_DIR}/{STATE_FILE_NAME}"


def make_state(functions=None, individually=False, artifact=None, name="first-service"):
    package = {"individually": individually, "artifactDirectoryName": "some/path"}
    if artifact is not None:
        package["artifact"] = artifact
    return {
        "service": {
            "name": name,
            "functions": {"first": {"handler": "sample.handler"}} if functions is None else functions,
        },
        "package": package,
    }


@pytest.fixture
def capture_warnings():
    messages = []
    handler_id = logger.add(messages.append, level="WARNING", format="{message}")
    yield messages
    logger.remove(handler_id)


class TestStateLoading:
    """Test loading persisted state."""

    def test_missing_state(self, memory_fs):
        with pytest.raises(MissingStateError) as exc_info:
            DeploymentValidator(memory_fs).validate_package(PACKAGE_DIR)

        assert "deploy the service before attempting this operation" in str(exc_info.value)
        assert exc_info.value.error_code == "STATE_NOT_FOUND"
        assert exc_info.value.recoverable

    def test_state_read_once(self, make_fs):
        fs = make_fs({STATE_PATH: make_state(functions={})})

        DeploymentValidator(fs).validate_package(PACKAGE_DIR)

        assert fs.calls == [("exists", STATE_PATH), ("read_json", STATE_PATH)]


class TestArtifactChecks:
    """Test artifact existence checks."""

    def test_whole_service_artifact_missing(self, make_fs):
        """Scenario A: whole-service packaging without the service zip."""
        fs = make_fs({STATE_PATH: make_state(individually=False)})

        with pytest.raises(MissingArtifactError) as exc_info:
            DeploymentValidator(fs).validate_package(PACKAGE_DIR)

        assert exc_info.value.artifact_path == "some/path/first-service.zip"
        assert exc_info.value.error_code == "ARTIFACT_SERVICE_MISSING"

    def test_individual_artifact_missing(self, make_fs):
        """Scenario B: individual packaging without the function zip."""
        fs = make_fs({STATE_PATH: make_state(individually=True)})

        with pytest.raises(MissingArtifactError) as exc_info:
            DeploymentValidator(fs).validate_package(PACKAGE_DIR)

        assert exc_info.value.function_name == "first"
        assert exc_info.value.artifact_path == "some/path/first.zip"

    def test_zero_functions(self, make_fs):
        """Scenario C: nothing to check without functions."""
        fs = make_fs({STATE_PATH: make_state(functions={}, individually=True)})

        DeploymentValidator(fs).validate_package(PACKAGE_DIR)

        assert fs.exists_calls == [STATE_PATH]

    def test_function_artifact_override(self, make_fs):
        """Scenario D: the explicit artifact path is checked verbatim."""
        state = make_state(
            functions={"first": {"package": {"artifact": "artifact.zip"}}},
            individually=True,
            artifact="",
        )
        fs = make_fs({STATE_PATH: state, "artifact.zip": b""})

        DeploymentValidator(fs).validate_package(PACKAGE_DIR)

        assert fs.exists_calls == [STATE_PATH, "artifact.zip"]

    def test_service_artifact_checked_once(self, make_fs):
        functions = {"a": {}, "b": {}, "c": {}}
        fs = make_fs({"some/path/first-service.zip": b""})

        validate_deployment(DeploymentState.model_validate(make_state(functions=functions)), fs)

        assert fs.exists_calls == ["some/path/first-service.zip"]

    def test_service_artifact_override(self, make_fs):
        state = make_state(artifact="some/file.zip")
        fs = make_fs()

        with pytest.raises(MissingArtifactError) as exc_info:
            validate_deployment(DeploymentState.model_validate(state), fs)
        assert exc_info.value.artifact_path == "some/file.zip"

        fs.files["some/file.zip"] = b""
        validate_deployment(DeploymentState.model_validate(state), fs)

    def test_function_level_individually(self, make_fs):
        """A function opting in is checked on its own; the rest share the service zip."""
        functions = {"first": {"package": {"individually": True}}, "second": {}}
        fs = make_fs({"some/path/first.zip": b"", "some/path/first-service.zip": b""})

        validate_deployment(DeploymentState.model_validate(make_state(functions=functions)), fs)

        assert fs.exists_calls == ["some/path/first.zip", "some/path/first-service.zip"]

    def test_service_artifact_beats_service_individually(self, make_fs):
        """With a service artifact only explicit opt-ins are packaged individually."""
        functions = {"first": {}, "second": {"package": {"individually": True}}}
        state = make_state(functions=functions, individually=True, artifact="service.zip")
        fs = make_fs({"service.zip": b"", "some/path/second.zip": b""})

        validate_deployment(DeploymentState.model_validate(state), fs)

        assert fs.exists_calls == ["service.zip", "some/path/second.zip"]

    def test_function_opts_out(self, make_fs):
        functions = {"first": {"package": {"individually": False}}}
        fs = make_fs({"some/path/first-service.zip": b""})

        validate_deployment(
            DeploymentState.model_validate(make_state(functions=functions, individually=True)), fs
        )

        assert fs.exists_calls == ["some/path/first-service.zip"]

    def test_image_functions_skipped(self, make_fs):
        functions = {"container": {"image": "repo/app:latest"}}
        fs = make_fs()

        validate_deployment(DeploymentState.model_validate(make_state(functions=functions)), fs)

        assert fs.exists_calls == []

    def test_never_writes(self, make_fs):
        fs = make_fs({STATE_PATH: make_state(), "some/path/first-service.zip": b""})

        DeploymentValidator(fs).validate_package(PACKAGE_DIR)

        assert fs.writes == []


class TestTimeoutWarning:
    """Test the API Gateway timeout warning."""

    def _validate(self, fs, events, timeout=31):
        functions = {"foo": {"timeout": timeout, "events": events, "image": "x"}}
        validate_deployment(DeploymentState.model_validate(make_state(functions=functions)), fs)

    def test_warns_for_sync_http(self, memory_fs, capture_warnings):
        self._validate(memory_fs, [{"http": {"method": "GET", "path": "/foo"}}])

        assert len(capture_warnings) == 1
        assert "Function foo has timeout of 31 seconds" in capture_warnings[0]

    def test_async_http_not_warned(self, memory_fs, capture_warnings):
        self._validate(memory_fs, [{"http": {"method": "GET", "path": "/foo", "async": True}}])
        assert capture_warnings == []

    def test_short_timeout_not_warned(self, memory_fs, capture_warnings):
        self._validate(memory_fs, [{"http": {"method": "GET", "path": "/foo"}}], timeout=30)
        assert capture_warnings == []

    def test_non_http_not_warned(self, memory_fs, capture_warnings):
        self._validate(memory_fs, [{"schedule": "rate(1 hour)"}])
        assert capture_warnings == []
