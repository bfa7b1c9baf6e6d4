"""
Shared test fixtures and configuration.

Filesystem tests run against a staging root under tmp_path, with the
current user standing in for the service account so ownership changes
need no privilege.
"""

import os
import pwd
from pathlib import Path

import pytest

from lapdev_bootstrap.adapters.registry import AdapterRegistry
from lapdev_bootstrap.core.config.loader import HostLayout


@pytest.fixture
def service_user() -> str:
    """Name of the account running the tests."""
    try:
        return pwd.getpwuid(os.getuid()).pw_name
    except KeyError:
        pytest.skip("current uid has no passwd entry")


@pytest.fixture
def staging_root(tmp_path: Path) -> Path:
    root = tmp_path / "host"
    root.mkdir()
    return root


@pytest.fixture
def layout(staging_root: Path, service_user: str) -> HostLayout:
    """Default lapdev-ws layout, staged and owned by the current user."""
    return HostLayout(root=staging_root, service_user=service_user)


@pytest.fixture
def registry() -> AdapterRegistry:
    """Registry with the real host adapters."""
    return AdapterRegistry.default()


@pytest.fixture
def snapshot():
    """Return a function mapping every path under a root to (content, mode, uid)."""

    def take(root: Path) -> dict[str, tuple[bytes | None, int, int]]:
        result = {}
        for path in sorted(root.rglob("*")):
            st = path.lstat()
            content = path.read_bytes() if path.is_file() else None
            result[str(path.relative_to(root))] = (content, st.st_mode, st.st_uid)
        return result

    return take
