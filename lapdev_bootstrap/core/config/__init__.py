from lapdev_bootstrap.core.config.loader import ConfigError, HostLayout, load_layout
from lapdev_bootstrap.core.config.ws_config import WsConfig, load_ws_config

__all__ = [
    "ConfigError",
    "HostLayout",
    "WsConfig",
    "load_layout",
    "load_ws_config",
]
