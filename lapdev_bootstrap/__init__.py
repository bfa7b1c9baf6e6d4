"""lapdev-ws host bootstrapper."""

__version__ = "0.1.0"
