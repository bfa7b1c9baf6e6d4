"""
Tests for configuration — host layout loading and the daemon config reader.
"""

import textwrap
from pathlib import Path

import pytest

from lapdev_bootstrap.core.config.loader import (
    ENV_LAYOUT,
    ENV_ROOT,
    ConfigError,
    HostLayout,
    load_layout,
)
from lapdev_bootstrap.core.config.ws_config import load_ws_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv(ENV_ROOT, raising=False)
    monkeypatch.delenv(ENV_LAYOUT, raising=False)


# ── HostLayout ──────────────────────────────────────────────────────


class TestHostLayout:
    def test_defaults(self):
        layout = HostLayout()
        assert layout.service_user == "lapdev"
        assert layout.home == "/home/lapdev"
        assert layout.config_file == "/etc/lapdev-ws.conf"
        assert layout.state_dir == "/var/lib/lapdev"
        assert layout.delegate_dropin == "/etc/systemd/system/user@.service.d/delegate.conf"
        assert layout.containers_dir == "/home/lapdev/.config/containers"
        assert not layout.staged

    def test_home_follows_user(self):
        assert HostLayout(service_user="ws").home == "/home/ws"

    def test_explicit_home(self):
        layout = HostLayout(home_dir="/srv/lapdev")
        assert layout.user_config_dir == "/srv/lapdev/.config"

    def test_host_path_unstaged(self):
        assert HostLayout().host_path("/etc/x") == Path("/etc/x")

    def test_host_path_staged(self, tmp_path: Path):
        layout = HostLayout(root=tmp_path)
        assert layout.staged
        assert layout.host_path("/etc/x") == tmp_path / "etc" / "x"


# ── load_layout ─────────────────────────────────────────────────────


class TestLoadLayout:
    def test_no_overrides(self):
        assert load_layout() == HostLayout()

    def test_root_argument(self, tmp_path: Path):
        assert load_layout(root=tmp_path).root == tmp_path

    def test_root_from_env(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv(ENV_ROOT, str(tmp_path))
        assert load_layout().root == tmp_path

    def test_yaml_file(self, tmp_path: Path):
        path = tmp_path / "layout.yml"
        path.write_text(textwrap.dedent("""\
            service_user: ws
            state_dir: /srv/ws-state
        """))
        layout = load_layout(path=path)
        assert layout.service_user == "ws"
        assert layout.state_dir == "/srv/ws-state"
        assert layout.config_file == "/etc/lapdev-ws.conf"

    def test_yaml_nested_under_layout_key(self, tmp_path: Path):
        path = tmp_path / "layout.yml"
        path.write_text("layout:\n  service_user: nested\n")
        assert load_layout(path=path).service_user == "nested"

    def test_layout_from_env(self, tmp_path: Path, monkeypatch):
        path = tmp_path / "layout.yml"
        path.write_text("service_user: fromenv\n")
        monkeypatch.setenv(ENV_LAYOUT, str(path))
        assert load_layout().service_user == "fromenv"

    def test_root_argument_beats_file(self, tmp_path: Path):
        path = tmp_path / "layout.yml"
        path.write_text("root: /somewhere/else\n")
        assert load_layout(path=path, root=tmp_path).root == tmp_path

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "layout.yml"
        path.write_text("")
        assert load_layout(path=path) == HostLayout()

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_layout(path=tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "layout.yml"
        path.write_text("service_user: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_layout(path=path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "layout.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_layout(path=path)

    def test_unknown_key_rejected(self, tmp_path: Path):
        path = tmp_path / "layout.yml"
        path.write_text("service_usr: typo\n")
        with pytest.raises(ConfigError, match="Invalid host layout"):
            load_layout(path=path)


# ── Daemon config reader ────────────────────────────────────────────


class TestLoadWsConfig:
    def test_full(self, tmp_path: Path):
        path = tmp_path / "lapdev-ws.conf"
        path.write_text('bind = "10.0.0.1"\nws-port = 7123\ninter-ws-port = 7122\n')
        config = load_ws_config(path)
        assert config.bind == "10.0.0.1"
        assert config.ws_port == 7123
        assert config.inter_ws_port == 7122

    def test_missing_keys_use_daemon_defaults(self, tmp_path: Path):
        path = tmp_path / "lapdev-ws.conf"
        path.write_text("")
        config = load_ws_config(path)
        assert (config.bind, config.ws_port, config.inter_ws_port) == ("0.0.0.0", 6123, 6122)

    def test_port_out_of_range(self, tmp_path: Path):
        path = tmp_path / "lapdev-ws.conf"
        path.write_text("ws-port = 70000\n")
        with pytest.raises(ConfigError, match="invalid settings"):
            load_ws_config(path)

    @pytest.mark.parametrize("line", [
        "ws-port = true",
        "ws-port = 6123.0",
        'ws-port = "6123"',
        "inter-ws-port = false",
        "bind = 1",
    ])
    def test_wrong_value_types_rejected(self, tmp_path: Path, line: str):
        path = tmp_path / "lapdev-ws.conf"
        path.write_text(line + "\n")
        with pytest.raises(ConfigError, match="invalid settings"):
            load_ws_config(path)

    def test_not_toml(self, tmp_path: Path):
        path = tmp_path / "lapdev-ws.conf"
        path.write_text("bind = 0.0.0.0\n")
        with pytest.raises(ConfigError, match="wrong config file format"):
            load_ws_config(path)

    def test_unreadable(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="can't read config file"):
            load_ws_config(tmp_path / "missing.conf")

    def test_not_utf8(self, tmp_path: Path):
        path = tmp_path / "lapdev-ws.conf"
        path.write_bytes(b"\xff\xfe")
        with pytest.raises(ConfigError, match="can't read config file"):
            load_ws_config(path)
