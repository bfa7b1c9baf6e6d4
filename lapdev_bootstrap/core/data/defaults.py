"""
Default documents and host constants for lapdev-ws.

These values are a compatibility surface: the daemon, systemd and podman
read the files exactly as rendered here.
"""

from __future__ import annotations

from lapdev_bootstrap.core.models.documents import TomlDocument, UnitDropIn

SERVICE_USER = "lapdev"
SERVICE_SHELL = "/bin/bash"

CONFIG_FILE = "/etc/lapdev-ws.conf"
CONFIG_FILE_MODE = 0o640
STATE_DIR = "/var/lib/lapdev"
DELEGATE_DROPIN = "/etc/systemd/system/user@.service.d/delegate.conf"

DEFAULT_BIND = "0.0.0.0"
DEFAULT_WS_PORT = 6123
DEFAULT_INTER_WS_PORT = 6122

# cgroup v2 controllers the user@ session may manage for spawned workloads
DELEGATED_CONTROLLERS = ("memory", "pids", "cpu", "cpuset")

WS_CONFIG = TomlDocument(
    entries={
        "bind": DEFAULT_BIND,
        "ws-port": DEFAULT_WS_PORT,
        "inter-ws-port": DEFAULT_INTER_WS_PORT,
    },
)

DELEGATE_CONF = UnitDropIn(
    sections={"Service": {"Delegate": " ".join(DELEGATED_CONTROLLERS)}},
)

REGISTRIES_CONF = TomlDocument(
    entries={"unqualified-search-registries": ["docker.io"]},
)

STORAGE_CONF = TomlDocument(
    table="storage",
    entries={"driver": "overlay"},
)
