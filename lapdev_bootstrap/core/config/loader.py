"""
Host layout loader — where the bootstrapper puts things.

Every path and name defaults to the fixed lapdev-ws constants. A YAML
layout file and a staging root may override them for image builds and
tests:

    CLI flag  >  LAPDEV_BOOTSTRAP_* env var  >  layout file  >  defaults

The staging ``root`` prefixes every filesystem path. Account operations
always target the running host.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path, PurePosixPath

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from lapdev_bootstrap.core.data.defaults import (
    CONFIG_FILE,
    DELEGATE_DROPIN,
    SERVICE_USER,
    STATE_DIR,
)

logger = logging.getLogger(__name__)

ENV_ROOT = "LAPDEV_BOOTSTRAP_ROOT"
ENV_LAYOUT = "LAPDEV_BOOTSTRAP_LAYOUT"


class ConfigError(Exception):
    """Raised when a configuration file is invalid or missing."""


class HostLayout(BaseModel):
    """Paths and names on the target host.

    All path fields are host-absolute (as the daemon sees them); use
    :meth:`host_path` to get the location under the staging root.
    """

    model_config = ConfigDict(extra="forbid")

    root: Path = Path("/")
    service_user: str = SERVICE_USER
    home_dir: str | None = None
    config_file: str = CONFIG_FILE
    state_dir: str = STATE_DIR
    delegate_dropin: str = DELEGATE_DROPIN

    @property
    def home(self) -> str:
        """The service account's home directory."""
        return self.home_dir or f"/home/{self.service_user}"

    @property
    def user_config_dir(self) -> str:
        return f"{self.home}/.config"

    @property
    def containers_dir(self) -> str:
        """Podman's per-user configuration directory."""
        return f"{self.user_config_dir}/containers"

    @property
    def staged(self) -> bool:
        """Whether paths are redirected under a staging root."""
        return self.root != Path("/")

    def host_path(self, path: str) -> Path:
        """Map a host-absolute path under the staging root."""
        pure = PurePosixPath(path)
        if not self.staged:
            return Path(pure)
        if pure.is_absolute():
            pure = pure.relative_to("/")
        return self.root / pure


def load_layout(
    path: Path | None = None,
    root: Path | None = None,
) -> HostLayout:
    """Build the host layout from defaults, a layout file and overrides.

    Args:
        path: Optional YAML layout file. Falls back to $LAPDEV_BOOTSTRAP_LAYOUT.
        root: Optional staging root. Falls back to $LAPDEV_BOOTSTRAP_ROOT.

    Returns:
        Validated HostLayout.

    Raises:
        ConfigError: If the layout file is missing or invalid.
    """
    if path is None and os.environ.get(ENV_LAYOUT):
        path = Path(os.environ[ENV_LAYOUT])
    if root is None and os.environ.get(ENV_ROOT):
        root = Path(os.environ[ENV_ROOT])

    data: dict = {}
    if path is not None:
        data = _read_layout_file(path)

    if root is not None:
        data["root"] = root

    try:
        layout = HostLayout.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid host layout: {e}") from e

    if layout.staged:
        logger.info("Staging root: %s", layout.root)
    return layout


def _read_layout_file(path: Path) -> dict:
    if not path.is_file():
        raise ConfigError(f"Layout file not found: {path}")

    logger.debug("Loading host layout from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # Accept either a flat mapping or one nested under "layout"
    layout = data.get("layout", data)
    if not isinstance(layout, dict):
        raise ConfigError(f"Expected 'layout' to be a mapping in {path}")
    return dict(layout)
