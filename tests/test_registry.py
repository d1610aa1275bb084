"""Tests for the crane-backed registry client."""

import pytest

from pilreg_py.utils import registry as registry_module
from pilreg_py.utils.registry import CraneClient, RegistryError, RegistryOptions
from pilreg_py.utils.subprocess import CommandResult


class RecordingRunner:
    """Stands in for run_command, replaying canned results."""

    def __init__(self, result=None):
        self.result = result or CommandResult(returncode=0, stdout="", stderr="")
        self.commands = []

    def __call__(self, cmd, timeout=None, **kwargs):
        self.commands.append((cmd, timeout))
        return self.result


@pytest.fixture
def runner(monkeypatch):
    recorder = RecordingRunner()
    monkeypatch.setattr(registry_module, "run_command", recorder)
    return recorder


class TestRegistryOptions:
    def test_secure_by_default(self):
        assert RegistryOptions().get_crane_args() == []

    @pytest.mark.parametrize("kwargs", [{"insecure": True}, {"skip_tls": True}])
    def test_insecure_transport(self, kwargs):
        assert RegistryOptions(**kwargs).get_crane_args() == ["--insecure"]


class TestCraneClient:
    def test_list_catalog(self, runner):
        runner.result = CommandResult(returncode=0, stdout="app\n\nlibrary/db\n", stderr="")

        repositories = CraneClient(RegistryOptions(timeout=30)).list_catalog("reg1")

        assert repositories == ["app", "library/db"]
        assert runner.commands == [(["crane", "catalog", "reg1"], 30)]

    def test_list_tags_with_insecure(self, runner):
        runner.result = CommandResult(returncode=0, stdout="v1\nv2\n", stderr="")

        tags = CraneClient(RegistryOptions(insecure=True)).list_tags("reg1/app")

        assert tags == ["v1", "v2"]
        assert runner.commands[0][0] == ["crane", "ls", "reg1/app", "--insecure"]

    def test_manifest_and_config_are_returned_verbatim(self, runner):
        runner.result = CommandResult(returncode=0, stdout='{"schemaVersion": 2}', stderr="")
        client = CraneClient()

        assert client.get_manifest("reg1/app:v1") == '{"schemaVersion": 2}'
        assert client.get_config("reg1/app:v1") == '{"schemaVersion": 2}'
        assert [cmd for cmd, _ in runner.commands] == [
            ["crane", "manifest", "reg1/app:v1"],
            ["crane", "config", "reg1/app:v1"],
        ]

    def test_no_timeout_by_default(self, runner):
        CraneClient().pull_and_save("reg1/app:v1", "/out/fs.tar")
        CraneClient().list_catalog("reg1")

        assert [timeout for _, timeout in runner.commands] == [None, None]

    def test_pull_and_save(self, runner):
        CraneClient().pull_and_save("reg1/app:v1", "/out/fs.tar", cache_path="/cache")

        assert runner.commands[0][0] == [
            "crane", "pull", "--cache_path", "/cache", "reg1/app:v1", "/out/fs.tar",
        ]

    def test_pull_and_save_without_cache(self, runner):
        CraneClient(binary="/usr/local/bin/crane").pull_and_save("reg1/app:v1", "/out/fs.tar")

        assert runner.commands[0][0] == ["/usr/local/bin/crane", "pull", "reg1/app:v1", "/out/fs.tar"]

    def test_failure_raises_registry_error(self, runner):
        runner.result = CommandResult(returncode=1, stdout="", stderr="UNAUTHORIZED: authentication required\n")

        with pytest.raises(RegistryError, match="UNAUTHORIZED"):
            CraneClient().list_catalog("reg1")

    def test_timeout_raises_registry_error(self, runner):
        runner.result = CommandResult(returncode=-1, stdout="", stderr="crane timed out", timed_out=True)

        with pytest.raises(RegistryError, match="timed out"):
            CraneClient().get_manifest("reg1/app:v1")


def test_command_result_error_message():
    assert CommandResult(returncode=3, stdout="", stderr="").error_message == "exit status 3"
    assert CommandResult(returncode=1, stdout="out", stderr=" err ").error_message == "err"
