"""
Daemon settings reader — parses /etc/lapdev-ws.conf the way lapdev-ws does.

All keys are optional; missing ones fall back to the daemon's built-in
defaults. Used by the host check to confirm the config still loads.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from lapdev_bootstrap.core.config.loader import ConfigError
from lapdev_bootstrap.core.data.defaults import (
    DEFAULT_BIND,
    DEFAULT_INTER_WS_PORT,
    DEFAULT_WS_PORT,
)

logger = logging.getLogger(__name__)


class WsConfig(BaseModel):
    """Effective lapdev-ws listener settings."""

    # serde in the daemon rejects bools, floats and quoted numbers
    model_config = ConfigDict(populate_by_name=True, strict=True)

    bind: str = DEFAULT_BIND
    ws_port: int = Field(default=DEFAULT_WS_PORT, alias="ws-port", ge=1, le=65535)
    inter_ws_port: int = Field(
        default=DEFAULT_INTER_WS_PORT, alias="inter-ws-port", ge=1, le=65535
    )


def load_ws_config(path: Path) -> WsConfig:
    """Parse a lapdev-ws config file.

    Raises:
        ConfigError: If the file cannot be read, is not TOML, or holds
            values of the wrong type.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"can't read config file {path}: {e}") from e

    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"wrong config file format in {path}: {e}") from e

    try:
        config = WsConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid settings in {path}: {e}") from e

    logger.debug(
        "Daemon config %s: bind=%s ws-port=%d inter-ws-port=%d",
        path, config.bind, config.ws_port, config.inter_ws_port,
    )
    return config
