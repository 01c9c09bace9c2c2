"""Test suite for the auth CLI commands."""
import sys
from argparse import Namespace

import pytest

from linear_cli.cli import main as cli
from linear_cli.credentials.domains import config_loader
from linear_cli.credentials.workflows.credential_store import CredentialStore
from linear_cli.keyring.memory import MemoryBackend


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def store(backend, tmp_path):
    return CredentialStore(backend, tmp_path / "config" / "linear" / "credentials.yml")


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run outside any project config and without LINEAR_* variables."""
    for name in config_loader.OPTION_NAMES:
        monkeypatch.delenv("LINEAR_" + name.upper(), raising=False)
    monkeypatch.delenv("LINEAR_DEBUG", raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config_loader, "_get_git_root", lambda cwd=None: None)


def run(argv, store):
    """Run the CLI and return its exit code."""
    with pytest.raises(SystemExit) as exc_info:
        cli.main(argv, store)
        raise SystemExit(0)
    return exc_info.value.code


class TestLogin:
    """Test suite for `auth login`."""

    def test_login_stores_key(self, isolated, store, backend, capsys):
        """Test that login stores the key and sets the first default."""
        assert run(["auth", "login", "-w", "acme", "-k", "lin_api_acme"], store) == 0

        assert backend.secrets == {"acme": "lin_api_acme"}
        out = capsys.readouterr().out
        assert "Logged in to workspace: acme" in out
        assert "Set as default workspace" in out

    def test_login_again_updates(self, isolated, store, capsys):
        """Test that logging in to a known workspace reports an update."""
        store.add_credential("acme", "lin_api_old")

        run(["auth", "login", "-w", "acme", "-k", "lin_api_new"], store)

        assert "Updated credentials for workspace: acme" in capsys.readouterr().out
        assert store.get_credential_api_key("acme") == "lin_api_new"

    def test_login_prompts_for_key(self, isolated, store, monkeypatch):
        """Test that the key is prompted for when --key is omitted."""
        monkeypatch.setattr(cli.getpass, "getpass", lambda prompt: "lin_api_prompted")

        run(["auth", "login", "-w", "acme"], store)

        assert store.get_credential_api_key("acme") == "lin_api_prompted"

    def test_login_warns_about_env_key(self, isolated, store, monkeypatch, capsys):
        """Test that a set LINEAR_API_KEY triggers a precedence warning."""
        monkeypatch.setenv("LINEAR_API_KEY", "lin_api_env")

        run(["auth", "login", "-w", "acme", "-k", "lin_api_acme"], store)

        assert "LINEAR_API_KEY" in capsys.readouterr().out

    def test_invalid_workspace_name(self, isolated, store, backend):
        """Test that an invalid workspace name is a usage error."""
        assert run(["auth", "login", "-w", "not valid", "-k", "lin_api_x"], store) == 2
        assert backend.secrets == {}

    def test_reserved_workspace_name(self, isolated, store):
        """Test that reserved names are rejected."""
        assert run(["auth", "login", "-w", "default", "-k", "lin_api_x"], store) == 2

    def test_secure_storage_failure(self, isolated, store, backend, capsys):
        """Test that a secure storage failure exits 1 with an error message."""
        backend.fail_set.add("acme")

        assert run(["auth", "login", "-w", "acme", "-k", "lin_api_acme"], store) == 1
        assert "Error:" in capsys.readouterr().err
        assert store.get_workspaces() == []


class TestLogout:
    """Test suite for `auth logout`."""

    def test_logout_with_force(self, isolated, store, capsys):
        """Test that --force removes without confirmation and reports the new default."""
        store.add_credential("workspace-a", "lin_api_a")
        store.add_credential("workspace-b", "lin_api_b")

        run(["auth", "logout", "workspace-a", "--force"], store)

        assert store.get_workspaces() == ["workspace-b"]
        out = capsys.readouterr().out
        assert "Removed credentials for workspace: workspace-a" in out
        assert "Default workspace is now: workspace-b" in out

    def test_logout_cancelled(self, isolated, store, monkeypatch, capsys):
        """Test that declining the confirmation keeps the workspace."""
        store.add_credential("acme", "lin_api_acme")
        monkeypatch.setattr("builtins.input", lambda prompt: "n")

        run(["auth", "logout"], store)

        assert store.get_workspaces() == ["acme"]
        assert "Cancelled" in capsys.readouterr().out

    def test_logout_selects_workspace(self, isolated, store, monkeypatch):
        """Test that the workspace is chosen by number when not given."""
        store.add_credential("workspace-a", "lin_api_a")
        store.add_credential("workspace-b", "lin_api_b")
        monkeypatch.setattr("builtins.input", lambda prompt: "2")

        cli.cmd_auth_logout(Namespace(workspace=None, force=True), store)

        assert store.get_workspaces() == ["workspace-a"]

    def test_logout_unknown_workspace(self, isolated, store):
        """Test that an unknown workspace exits 1."""
        store.add_credential("acme", "lin_api_acme")

        assert run(["auth", "logout", "other", "-f"], store) == 1

    def test_logout_without_workspaces(self, isolated, store):
        """Test that logout with nothing configured exits 1."""
        assert run(["auth", "logout"], store) == 1


class TestDefaultAndList:
    """Test suite for `auth default` and `auth list`."""

    def test_set_default(self, isolated, store, capsys):
        """Test that a known workspace becomes the default."""
        store.add_credential("workspace-a", "lin_api_a")
        store.add_credential("workspace-b", "lin_api_b")

        run(["auth", "default", "workspace-b"], store)

        assert store.get_default_workspace() == "workspace-b"
        assert "Default workspace set to: workspace-b" in capsys.readouterr().out

    def test_set_unknown_default(self, isolated, store, capsys):
        """Test that an unknown workspace is a usage error listing the options."""
        store.add_credential("workspace-a", "lin_api_a")
        store.add_credential("workspace-b", "lin_api_b")

        assert run(["auth", "default", "nope"], store) == 2

        err = capsys.readouterr().err
        assert '"nope"' in err
        assert "workspace-a, workspace-b" in err
        assert store.get_default_workspace() == "workspace-a"

    def test_single_workspace(self, isolated, store, capsys):
        """Test that there is nothing to choose with one workspace."""
        store.add_credential("acme", "lin_api_acme")

        run(["auth", "default"], store)

        assert "Only one workspace configured: acme" in capsys.readouterr().out

    def test_list_marks_default_and_missing_keys(self, isolated, store, backend, capsys):
        """Test that list marks the default and workspaces without a key."""
        store.add_credential("workspace-a", "lin_api_a")
        store.add_credential("workspace-b", "lin_api_b")
        backend.secrets.pop("workspace-b")
        reloaded = CredentialStore(backend, store.get_credentials_path())

        run(["auth", "list"], reloaded)

        lines = capsys.readouterr().out.splitlines()
        assert lines[1].startswith("* workspace-a")
        assert "stored" in lines[1]
        assert lines[2].startswith("  workspace-b")
        assert "missing" in lines[2]

    def test_list_empty(self, isolated, store, capsys):
        """Test that list explains how to add a workspace."""
        run(["auth", "list"], store)

        assert "No workspaces configured" in capsys.readouterr().out


class TestTokenAndMisc:
    """Test suite for `auth token`, `auth path` and top-level handling."""

    def test_token_uses_default(self, isolated, store, capsys):
        """Test that the default workspace's key is printed."""
        store.add_credential("acme", "lin_api_acme")

        run(["auth", "token"], store)

        assert capsys.readouterr().out.strip() == "lin_api_acme"

    def test_token_for_workspace(self, isolated, store, capsys):
        """Test that --workspace selects another stored key."""
        store.add_credential("acme", "lin_api_acme")
        store.add_credential("other", "lin_api_other")

        run(["auth", "token", "-w", "other"], store)

        assert capsys.readouterr().out.strip() == "lin_api_other"

    def test_token_missing(self, isolated, store, capsys):
        """Test that no configured key exits 1 with a suggestion."""
        assert run(["auth", "token"], store) == 1

        err = capsys.readouterr().err
        assert "No API key configured" in err
        assert "linear auth login" in err

    def test_path(self, isolated, store, capsys):
        """Test that the credentials path is printed."""
        run(["auth", "path"], store)

        assert capsys.readouterr().out.strip() == str(store.get_credentials_path())

    def test_version(self, capsys):
        """Test the version command."""
        run(["version"], None)

        assert cli.VERSION in capsys.readouterr().out

    def test_no_command(self, store):
        """Test that no command is a usage error."""
        assert run([], store) == 2

    def test_auth_without_subcommand(self, store):
        """Test that `auth` alone is a usage error."""
        assert run(["auth"], store) == 2


class TestUnsupportedPlatform:
    """Test suite for commands that never touch secure storage."""

    @pytest.fixture
    def freebsd(self, isolated, tmp_path, monkeypatch):
        monkeypatch.setattr(sys, "platform", "freebsd14")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))

    def test_token_from_environment(self, freebsd, monkeypatch, capsys):
        """Test that LINEAR_API_KEY works without a secure-storage backend."""
        monkeypatch.setenv("LINEAR_API_KEY", "lin_api_env")

        assert run(["auth", "token"], None) == 0

        assert capsys.readouterr().out.strip() == "lin_api_env"

    def test_path(self, freebsd, tmp_path, capsys):
        """Test that `auth path` works without a secure-storage backend."""
        assert run(["auth", "path"], None) == 0

        expected = tmp_path / "config" / "linear" / "credentials.yml"
        assert capsys.readouterr().out.strip() == str(expected)

    def test_login_reports_unsupported_platform(self, freebsd, capsys):
        """Test that storing a key fails cleanly with exit code 1."""
        assert run(["auth", "login", "-w", "acme", "-k", "lin_api_acme"], None) == 1

        err = capsys.readouterr().err
        assert "Unsupported platform" in err
        assert "LINEAR_API_KEY" in err


class TestEnvFile:
    """Test suite for .env loading before auth commands."""

    def test_token_from_env_file(self, isolated, store, tmp_path, capsys):
        """Test that LINEAR_API_KEY from ./.env is used."""
        (tmp_path / ".env").write_text("LINEAR_API_KEY=lin_api_dotenv\n")

        run(["auth", "token"], store)

        assert capsys.readouterr().out.strip() == "lin_api_dotenv"

    def test_environment_beats_env_file(self, isolated, store, tmp_path, monkeypatch, capsys):
        """Test that an exported variable is not overridden by .env."""
        (tmp_path / ".env").write_text("LINEAR_API_KEY=lin_api_dotenv\n")
        monkeypatch.setenv("LINEAR_API_KEY", "lin_api_shell")

        run(["auth", "token"], store)

        assert capsys.readouterr().out.strip() == "lin_api_shell"
