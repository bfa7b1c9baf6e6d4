"""
Tests for adapter protocol, registry, mock, account and filesystem adapters.
"""

import os
import stat
import subprocess
from pathlib import Path

import pytest

from lapdev_bootstrap.adapters.base import ExecutionContext
from lapdev_bootstrap.adapters.host import account as account_module
from lapdev_bootstrap.adapters.host.account import AccountAdapter
from lapdev_bootstrap.adapters.host.filesystem import FilesystemAdapter
from lapdev_bootstrap.adapters.mock import MockAdapter
from lapdev_bootstrap.adapters.registry import AdapterRegistry
from lapdev_bootstrap.core.models.action import Action, Receipt

MISSING_USER = "lapdev-test-no-such-user"


def _ctx(adapter: str, params: dict, dry_run: bool = False, action_id: str = "op-1") -> ExecutionContext:
    return ExecutionContext(
        action=Action(id=action_id, adapter=adapter, params=params),
        dry_run=dry_run,
        params=params,
    )


# ── Mock Adapter Tests ───────────────────────────────────────────────


class TestMockAdapter:
    def test_default_created(self):
        mock = MockAdapter(adapter_name="test-mock")
        receipt = mock.execute(_ctx("test-mock", {}))
        assert receipt.status == "created"
        assert mock.call_count == 1

    def test_dry_run_skips(self):
        mock = MockAdapter()
        receipt = mock.execute(_ctx("mock", {}, dry_run=True))
        assert receipt.status == "skipped"

    def test_set_present(self):
        mock = MockAdapter()
        mock.set_present("op-1")
        assert mock.execute(_ctx("mock", {})).status == "present"

    def test_set_failure(self):
        mock = MockAdapter()
        mock.set_failure("op-1", error="Intentional failure")
        receipt = mock.execute(_ctx("mock", {}))
        assert receipt.failed
        assert "Intentional failure" in receipt.error

    def test_reset(self):
        mock = MockAdapter()
        mock.set_failure("op-1")
        mock.execute(_ctx("mock", {}))
        mock.reset()
        assert mock.call_count == 0
        assert mock.execute(_ctx("mock", {})).ok


# ── Registry Tests ──────────────────────────────────────────────────


class TestAdapterRegistry:
    def test_default_registers_host_adapters(self):
        registry = AdapterRegistry.default()
        assert sorted(registry.list_adapters()) == ["account", "filesystem"]

    def test_register_and_get(self):
        registry = AdapterRegistry()
        mock = MockAdapter(adapter_name="test")
        registry.register(mock)
        assert registry.get("test") is mock

    def test_adapter_status(self):
        registry = AdapterRegistry()
        registry.register(MockAdapter(adapter_name="up", available=True))
        registry.register(MockAdapter(adapter_name="down", available=False))
        status = registry.adapter_status()
        assert status["up"]["available"] is True
        assert status["down"]["available"] is False

    def test_missing_adapter_fails(self):
        receipt = AdapterRegistry().execute_action(Action(id="x", adapter="nonexistent"))
        assert receipt.failed
        assert "No adapter registered" in receipt.error

    def test_validation_failure_is_a_failed_receipt(self):
        registry = AdapterRegistry.default()
        receipt = registry.execute_action(Action(id="x", adapter="filesystem", params={}))
        assert receipt.failed
        assert "Validation failed" in receipt.error

    def test_dry_run_passed_to_adapter(self):
        registry = AdapterRegistry()
        mock = MockAdapter(adapter_name="test")
        registry.register(mock)
        receipt = registry.execute_action(Action(id="op", adapter="test"), dry_run=True)
        assert receipt.status == "skipped"
        assert mock.call_log[0].dry_run is True

    def test_raising_adapter_is_contained(self):
        class Exploding(MockAdapter):
            def execute(self, context):
                raise RuntimeError("boom")

        registry = AdapterRegistry()
        registry.register(Exploding(adapter_name="bad"))
        receipt = registry.execute_action(Action(id="op", adapter="bad"))
        assert receipt.failed
        assert "boom" in receipt.error

    def test_execute_adds_timing(self):
        registry = AdapterRegistry()
        registry.register(MockAdapter(adapter_name="test"))
        receipt = registry.execute_action(Action(id="op-1", adapter="test"))
        assert receipt.duration_ms >= 0


# ── Filesystem Adapter Tests ────────────────────────────────────────


class TestFilesystemValidate:
    def test_unknown_operation(self):
        valid, msg = FilesystemAdapter().validate(_ctx("filesystem", {"operation": "rm", "path": "/x"}))
        assert not valid
        assert "Unknown operation" in msg

    def test_relative_path_rejected(self):
        valid, msg = FilesystemAdapter().validate(
            _ctx("filesystem", {"operation": "ensure_dir", "path": "var/lib"})
        )
        assert not valid
        assert "absolute" in msg

    def test_file_requires_content(self):
        valid, msg = FilesystemAdapter().validate(
            _ctx("filesystem", {"operation": "ensure_file", "path": "/etc/x"})
        )
        assert not valid
        assert "content" in msg

    def test_chown_tree_requires_owner(self):
        valid, msg = FilesystemAdapter().validate(
            _ctx("filesystem", {"operation": "ensure_file", "path": "/x", "content": "", "chown_tree": "/"})
        )
        assert not valid
        assert "owner" in msg


class TestFilesystemEnsureFile:
    def test_creates_with_parents_and_mode(self, tmp_path: Path, service_user: str):
        target = tmp_path / "etc" / "app.conf"
        receipt = FilesystemAdapter().execute(_ctx("filesystem", {
            "operation": "ensure_file",
            "path": str(target),
            "content": "a = 1\n",
            "owner": service_user,
            "mode": 0o640,
        }))
        assert receipt.status == "created"
        assert target.read_text() == "a = 1\n"
        assert stat.S_IMODE(target.stat().st_mode) == 0o640
        assert target.stat().st_uid == os.getuid()

    def test_existing_file_left_untouched(self, tmp_path: Path):
        target = tmp_path / "app.conf"
        target.write_text("custom\n")
        target.chmod(0o600)
        receipt = FilesystemAdapter().execute(_ctx("filesystem", {
            "operation": "ensure_file",
            "path": str(target),
            "content": "default\n",
            "mode": 0o644,
        }))
        assert receipt.status == "present"
        assert target.read_text() == "custom\n"
        assert stat.S_IMODE(target.stat().st_mode) == 0o600

    def test_chown_tree_without_owner_writes_nothing(self, tmp_path: Path):
        target = tmp_path / "storage.conf"
        receipt = FilesystemAdapter().execute(_ctx("filesystem", {
            "operation": "ensure_file",
            "path": str(target),
            "content": "[storage]\n",
            "chown_tree": str(tmp_path),
        }))
        assert receipt.failed
        assert "without an owner" in receipt.error
        assert not target.exists()

    def test_dry_run_creates_nothing(self, tmp_path: Path):
        target = tmp_path / "sub" / "app.conf"
        receipt = FilesystemAdapter().execute(_ctx("filesystem", {
            "operation": "ensure_file",
            "path": str(target),
            "content": "x",
        }, dry_run=True))
        assert receipt.status == "skipped"
        assert not target.parent.exists()

    def test_no_temp_files_left(self, tmp_path: Path):
        FilesystemAdapter().execute(_ctx("filesystem", {
            "operation": "ensure_file",
            "path": str(tmp_path / "a.conf"),
            "content": "x",
        }))
        assert [p.name for p in tmp_path.iterdir()] == ["a.conf"]

    def test_unknown_owner_fails_without_partial_file(self, tmp_path: Path):
        target = tmp_path / "a.conf"
        receipt = FilesystemAdapter().execute(_ctx("filesystem", {
            "operation": "ensure_file",
            "path": str(target),
            "content": "x",
            "owner": MISSING_USER,
        }))
        assert receipt.failed
        assert MISSING_USER in receipt.error
        assert not target.exists()

    def test_chown_tree_on_create(self, tmp_path: Path, service_user: str):
        tree = tmp_path / ".config"
        target = tree / "containers" / "storage.conf"
        receipt = FilesystemAdapter().execute(_ctx("filesystem", {
            "operation": "ensure_file",
            "path": str(target),
            "content": "x",
            "owner": service_user,
            "chown_tree": str(tree),
        }))
        assert receipt.ok
        for path in (tree, tree / "containers", target):
            assert path.stat().st_uid == os.getuid()


class TestFilesystemEnsureDir:
    def test_creates(self, tmp_path: Path, service_user: str):
        target = tmp_path / "var" / "lib" / "lapdev"
        receipt = FilesystemAdapter().execute(_ctx("filesystem", {
            "operation": "ensure_dir",
            "path": str(target),
            "owner": service_user,
        }))
        assert receipt.status == "created"
        assert target.is_dir()

    def test_present(self, tmp_path: Path):
        receipt = FilesystemAdapter().execute(_ctx("filesystem", {
            "operation": "ensure_dir",
            "path": str(tmp_path),
        }))
        assert receipt.status == "present"

    def test_file_in_the_way_fails(self, tmp_path: Path):
        blocker = tmp_path / "lapdev"
        blocker.write_text("")
        receipt = FilesystemAdapter().execute(_ctx("filesystem", {
            "operation": "ensure_dir",
            "path": str(blocker),
        }))
        assert receipt.failed
        assert "Not a directory" in receipt.error


# ── Account Adapter Tests ───────────────────────────────────────────


class TestAccountAdapter:
    def test_validate(self):
        valid, msg = AccountAdapter().validate(_ctx("account", {"operation": "ensure_user", "user": "x"}))
        assert not valid
        assert "home" in msg

    def test_existing_user_present(self, service_user: str, monkeypatch):
        def fail_run(*args, **kwargs):
            raise AssertionError("useradd must not run for an existing user")

        monkeypatch.setattr(account_module.subprocess, "run", fail_run)
        receipt = AccountAdapter().execute(_ctx("account", {
            "operation": "ensure_user", "user": service_user, "home": "/home/x",
        }))
        assert receipt.status == "present"
        assert receipt.metadata["uid"] == os.getuid()

    def test_dry_run_missing_user(self):
        receipt = AccountAdapter().execute(_ctx("account", {
            "operation": "ensure_user", "user": MISSING_USER, "home": "/home/x",
        }, dry_run=True))
        assert receipt.status == "skipped"

    def test_creates_missing_user(self, monkeypatch):
        calls = []

        def fake_run(command, **kwargs):
            calls.append(command)
            return subprocess.CompletedProcess(command, 0, stdout="", stderr="")

        monkeypatch.setattr(account_module.subprocess, "run", fake_run)
        receipt = AccountAdapter().execute(_ctx("account", {
            "operation": "ensure_user", "user": MISSING_USER, "home": "/home/lapdev",
        }))
        assert receipt.status == "created"
        assert calls == [[
            "useradd", "--create-home", "--home-dir", "/home/lapdev",
            "--shell", "/bin/bash", MISSING_USER,
        ]]

    def test_useradd_failure(self, monkeypatch):
        def fake_run(command, **kwargs):
            return subprocess.CompletedProcess(
                command, 1, stdout="", stderr="useradd: Permission denied.",
            )

        monkeypatch.setattr(account_module.subprocess, "run", fake_run)
        receipt = AccountAdapter().execute(_ctx("account", {
            "operation": "ensure_user", "user": MISSING_USER, "home": "/home/lapdev",
        }))
        assert receipt.failed
        assert "Permission denied" in receipt.error

    def test_useradd_missing_binary(self, monkeypatch):
        def fake_run(command, **kwargs):
            raise FileNotFoundError("useradd")

        monkeypatch.setattr(account_module.subprocess, "run", fake_run)
        receipt = AccountAdapter().execute(_ctx("account", {
            "operation": "ensure_user", "user": MISSING_USER, "home": "/home/lapdev",
        }))
        assert receipt.failed
        assert "Cannot run useradd" in receipt.error


class TestReceipt:
    @pytest.mark.parametrize("status,ok,changed", [
        ("created", True, True),
        ("present", True, False),
        ("skipped", True, False),
        ("failed", False, False),
    ])
    def test_flags(self, status, ok, changed):
        receipt = Receipt(adapter="a", action_id="b", status=status)
        assert receipt.ok is ok
        assert receipt.changed is changed
