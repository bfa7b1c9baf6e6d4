"""
Content documents — typed templates for the files the bootstrapper writes.

Each document renders to exact text. Tests compare rendered output and
parsed values instead of repeating string literals.

    TomlDocument   →  key = "value"  /  [table]
    UnitDropIn     →  [Section] / Key=Value
"""

from __future__ import annotations

from pydantic import BaseModel, Field

TomlValue = str | int | bool | list[str]


def _toml_value(value: TomlValue) -> str:
    """Render a scalar or string list as a TOML literal."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, list):
        return "[" + ", ".join(_toml_value(v) for v in value) + "]"
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class TomlDocument(BaseModel):
    """A flat TOML document, optionally under a single table header.

    Key order is preserved as declared.
    """

    table: str | None = None
    entries: dict[str, TomlValue] = Field(default_factory=dict)

    def render(self) -> str:
        lines: list[str] = []
        if self.table:
            lines.append(f"[{self.table}]")
        for key, value in self.entries.items():
            lines.append(f"{key} = {_toml_value(value)}")
        return "\n".join(lines) + "\n"

    def as_mapping(self) -> dict:
        """The document as ``tomllib.loads`` would return it."""
        if self.table:
            return {self.table: dict(self.entries)}
        return dict(self.entries)


class UnitDropIn(BaseModel):
    """A systemd unit drop-in: sections of ``Key=Value`` directives."""

    sections: dict[str, dict[str, str]] = Field(default_factory=dict)

    def render(self) -> str:
        blocks: list[str] = []
        for section, directives in self.sections.items():
            lines = [f"[{section}]"]
            lines.extend(f"{key}={value}" for key, value in directives.items())
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks) + "\n"


Document = TomlDocument | UnitDropIn
