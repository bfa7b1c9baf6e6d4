"""
Check use case — read-only verification of a bootstrapped host.

Reports each managed resource as a health component:

    healthy    present, default content, expected owner/mode
    degraded   present but customized or with unexpected owner/mode
    unhealthy  missing, or the daemon could not load it

Nothing on the host is modified.
"""

from __future__ import annotations

import logging
import pwd
import stat
from pathlib import Path

from lapdev_bootstrap.core.config.loader import ConfigError, HostLayout
from lapdev_bootstrap.core.config.ws_config import load_ws_config
from lapdev_bootstrap.core.data import defaults
from lapdev_bootstrap.core.models.documents import Document
from lapdev_bootstrap.core.observability.health import ComponentHealth, SystemHealth

logger = logging.getLogger(__name__)


def check_host(layout: HostLayout | None = None) -> SystemHealth:
    """Run every host check and return the aggregate health."""
    layout = layout or HostLayout()
    health = SystemHealth()

    uid = _lookup_uid(layout.service_user)

    health.add(check_account(layout.service_user, uid))
    health.add(check_ws_config(layout, uid))
    health.add(check_state_dir(layout, uid))
    health.add(_check_managed_file(
        name="delegate-dropin",
        path=layout.host_path(layout.delegate_dropin),
        document=defaults.DELEGATE_CONF,
    ))
    for filename, document in (
        ("registries.conf", defaults.REGISTRIES_CONF),
        ("storage.conf", defaults.STORAGE_CONF),
    ):
        health.add(_check_managed_file(
            name=f"containers/{filename}",
            path=layout.host_path(f"{layout.containers_dir}/{filename}"),
            document=document,
            uid=uid,
        ))

    logger.info("Host check: %s", health.status)
    return health


def check_account(user: str, uid: int | None) -> ComponentHealth:
    if uid is None:
        return ComponentHealth(
            name="service-account",
            status="unhealthy",
            message=f"User '{user}' does not exist",
        )
    return ComponentHealth(
        name="service-account",
        status="healthy",
        message=f"User '{user}' exists",
        details={"uid": uid},
    )


def check_ws_config(layout: HostLayout, uid: int | None) -> ComponentHealth:
    """The daemon config must exist, load, and not be world-accessible."""
    path = layout.host_path(layout.config_file)
    component = _check_managed_file(
        name="daemon-config",
        path=path,
        document=defaults.WS_CONFIG,
        uid=uid,
    )
    if component.status == "unhealthy":
        return component

    try:
        config = load_ws_config(path)
    except ConfigError as e:
        return ComponentHealth(
            name="daemon-config",
            status="unhealthy",
            message=str(e),
            details={"path": str(path)},
        )

    component.details["settings"] = config.model_dump()

    mode = stat.S_IMODE(path.stat().st_mode)
    component.details["mode"] = oct(mode)
    if mode & stat.S_IRWXO:
        _degrade(component, f"world-accessible (mode {oct(mode)})")

    return component


def check_state_dir(layout: HostLayout, uid: int | None) -> ComponentHealth:
    path = layout.host_path(layout.state_dir)
    if not path.is_dir():
        return ComponentHealth(
            name="state-dir",
            status="unhealthy",
            message=f"Missing directory {path}",
        )

    component = ComponentHealth(
        name="state-dir",
        status="healthy",
        message=f"{path} exists",
        details={"path": str(path)},
    )
    _check_owner(component, path, uid)
    return component


def _check_managed_file(
    name: str,
    path: Path,
    document: Document,
    uid: int | None = None,
) -> ComponentHealth:
    if not path.is_file():
        return ComponentHealth(
            name=name,
            status="unhealthy",
            message=f"Missing file {path}",
        )

    component = ComponentHealth(
        name=name,
        status="healthy",
        message=f"{path} has default content",
        details={"path": str(path)},
    )

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return ComponentHealth(
            name=name,
            status="unhealthy",
            message=f"Cannot read {path}: {e}",
        )

    if content != document.render():
        _degrade(component, "customized")

    if uid is not None:
        _check_owner(component, path, uid)
    return component


def _check_owner(component: ComponentHealth, path: Path, uid: int | None) -> None:
    if uid is None:
        return
    actual = path.stat().st_uid
    if actual != uid:
        _degrade(component, f"owned by uid {actual}, expected {uid}")


def _degrade(component: ComponentHealth, reason: str) -> None:
    if component.status == "healthy":
        component.status = "degraded"
        component.message = reason
    else:
        component.message = f"{component.message}; {reason}"


def _lookup_uid(user: str) -> int | None:
    try:
        return pwd.getpwnam(user).pw_uid
    except KeyError:
        return None
