"""
End-to-end tests for the ``lb`` command line.

Every test runs against a temporary store selected through
``LOCKBOX_DB_PATH``.
"""
import sys

import pytest
from click.testing import CliRunner

from lockbox.cli import cli
from lockbox.vault.crypto import encrypt
from lockbox.vault.keys import get_key
from lockbox.vault.store import SecretStore


@pytest.fixture
def runner(lockbox_env):
    return CliRunner()


@pytest.fixture
def lb(runner):
    def invoke(*args):
        return runner.invoke(cli, list(args))
    return invoke


@pytest.fixture
def initialized(lb):
    result = lb("init")
    assert result.exit_code == 0
    return lb


class TestInit:

    def test_init(self, lb, lockbox_env):
        result = lb("init")
        assert result.exit_code == 0
        assert "initialized successfully" in result.output
        assert lockbox_env.exists()

    def test_init_idempotent(self, lb, lockbox_env):
        lb("init")
        with SecretStore(lockbox_env) as store:
            first = get_key(store)
        result = lb("init")
        assert result.exit_code == 0
        assert "already initialized" in result.output
        with SecretStore(lockbox_env) as store:
            assert get_key(store) == first

    def test_not_initialized(self, lb):
        result = lb("set", "KEY", "value")
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "init" in result.output


class TestSecretCommands:

    def test_set_and_get(self, initialized):
        result = initialized("set", "MY_SECRET", "super_secret_value")
        assert result.exit_code == 0
        assert "MY_SECRET" in result.output
        result = initialized("get", "MY_SECRET")
        assert result.exit_code == 0
        assert result.output == "super_secret_value"

    def test_overwrite(self, initialized):
        initialized("set", "API_KEY", "old_value")
        initialized("set", "API_KEY", "new_value")
        assert initialized("get", "API_KEY").output == "new_value"

    def test_get_not_found(self, initialized):
        result = initialized("get", "NONEXISTENT")
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_delete(self, initialized):
        initialized("set", "SECRET_TO_DELETE", "value")
        result = initialized("delete", "SECRET_TO_DELETE")
        assert result.exit_code == 0
        assert "deleted successfully" in result.output
        assert initialized("get", "SECRET_TO_DELETE").exit_code == 1

    def test_delete_not_found(self, initialized):
        result = initialized("delete", "NONEXISTENT")
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_large_value(self, initialized):
        large = "A" * 10240
        initialized("set", "LARGE_SECRET", large)
        assert initialized("get", "LARGE_SECRET").output == large

    def test_get_non_utf8_value(self, initialized, lockbox_env):
        """Undecodable plaintext is reported as an error, not a traceback."""
        with SecretStore(lockbox_env) as store:
            store.set_secret("BIN", encrypt(b"\xff\xfe", get_key(store)))
        result = initialized("get", "BIN")
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "UTF-8" in result.output
        assert not isinstance(result.exception, UnicodeError)

    def test_set_unencodable_value(self, initialized):
        result = initialized("set", "K", "\udcff")
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert initialized("get", "K").exit_code == 1


class TestList:

    def test_list(self, initialized):
        for key in ["SECRET3", "SECRET1", "SECRET2"]:
            initialized("set", key, "value")
        result = initialized("list")
        assert result.exit_code == 0
        assert result.output.splitlines() == ["SECRET1", "SECRET2", "SECRET3"]

    def test_list_empty(self, initialized):
        result = initialized("list")
        assert result.exit_code == 0
        assert "No secrets found" in result.output

    def test_list_long(self, initialized):
        initialized("set", "K", "v")
        result = initialized("list", "--long")
        assert result.exit_code == 0
        fields = result.output.strip().split("\t")
        assert fields[0] == "K"
        assert len(fields) == 3


class TestEnv:

    def test_env_export(self, initialized):
        initialized("set", "DB_HOST", "localhost")
        initialized("set", "DB_PORT", "5432")
        result = initialized("env")
        assert result.exit_code == 0
        assert result.output == 'export DB_HOST="localhost"\nexport DB_PORT="5432"\n'

    def test_env_escaping(self, initialized):
        initialized("set", "COMPLEX_SECRET", 'value"with"quotes$and`backticks`')
        result = initialized("env")
        assert result.output == (
            'export COMPLEX_SECRET="value\\"with\\"quotes\\$and\\`backticks\\`"\n'
        )

    def test_env_rejects_bad_name(self, initialized):
        initialized("set", "A B", "v")
        result = initialized("env")
        assert result.exit_code == 1
        assert "not a valid shell variable name" in result.output
        assert "export" not in result.output

    def test_env_remote(self, lb, monkeypatch):
        calls = []

        def fake_fetch(remote, timeout):
            calls.append(remote)
            return 'export REMOTE_SECRET="remote_value"\n'

        monkeypatch.setattr("lockbox.cli.fetch_remote_env", fake_fetch)
        result = lb("env", "--remote", "127.0.0.1:9877")
        assert result.exit_code == 0
        assert result.output == 'export REMOTE_SECRET="remote_value"\n'
        assert calls == ["127.0.0.1:9877"]

    @pytest.mark.parametrize("remote", ["https://127.0.0.1:9877", "127.0.0.1", "host:1/path"])
    def test_env_remote_invalid(self, lb, remote):
        result = lb("env", "--remote", remote)
        assert result.exit_code == 1
        assert "Error:" in result.output


class TestRun:

    def test_run_passes_env(self, initialized):
        initialized("set", "TEST_VAR", "test_value")
        result = initialized(
            "run", "--", sys.executable, "-c",
            "import os, sys; sys.exit(0 if os.environ.get('TEST_VAR') == 'test_value' else 3)",
        )
        assert result.exit_code == 0

    def test_run_passes_non_shell_names(self, initialized):
        """Names that cannot be exported still reach the child environment."""
        initialized("set", "key.with.dots", "dotted")
        result = initialized(
            "run", "--", sys.executable, "-c",
            "import os, sys; sys.exit(0 if os.environ.get('key.with.dots') == 'dotted' else 3)",
        )
        assert result.exit_code == 0

    def test_run_propagates_exit_code(self, initialized):
        result = initialized("run", "--", sys.executable, "-c", "import sys; sys.exit(7)")
        assert result.exit_code == 7

    def test_run_command_not_found(self, initialized):
        result = initialized("run", "--", "lockbox-no-such-command-xyz")
        assert result.exit_code == 1
        assert "failed to execute command" in result.output

    def test_run_without_command(self, initialized):
        result = initialized("run")
        assert result.exit_code == 1
        assert "no command provided" in result.output

    def test_run_remote(self, lb, monkeypatch):
        monkeypatch.setattr(
            "lockbox.cli.fetch_remote_secrets",
            lambda remote, timeout: {"RUN_VAR": "run_value"},
        )
        result = lb(
            "run", "--remote", "127.0.0.1:9878", "--", sys.executable, "-c",
            "import os, sys; sys.exit(0 if os.environ.get('RUN_VAR') == 'run_value' else 3)",
        )
        assert result.exit_code == 0


class TestServe:

    def test_serve_rejects_public_host(self, initialized):
        result = initialized("serve", "--host", "0.0.0.0")
        assert result.exit_code == 1
        assert "non-loopback" in result.output

    def test_serve_uses_context(self, initialized, monkeypatch):
        seen = {}

        def fake_serve(context, host, port):
            seen.update(host=host, port=port, keys=context.vault.keys())

        monkeypatch.setattr("lockbox.cli.serve_forever", fake_serve)
        initialized("set", "K", "v")
        result = initialized("serve", "--port", "9876")
        assert result.exit_code == 0
        assert "http://127.0.0.1:9876" in result.output
        assert seen == {"host": "127.0.0.1", "port": 9876, "keys": ["K"]}
