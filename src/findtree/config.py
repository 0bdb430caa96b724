from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, cast


class ConfigError(ValueError):
    """Raised when a findtree configuration file is invalid."""


OutputFormat = Literal["terminal", "json"]

DEFAULT_FORMAT: OutputFormat = "terminal"
_FORMATS = {"terminal", "json"}


@dataclass(frozen=True, slots=True)
class FindTreeConfig:
    detect_useless_suppressions: bool = True
    show_suppressed: bool = True
    # None means every rule may be judged when looking for useless suppressions.
    active_rules: tuple[str, ...] | None = None
    expand: bool = True
    format: OutputFormat = DEFAULT_FORMAT


def load_config(project_dir: Path | str = ".") -> FindTreeConfig:
    """
    Load findtree configuration from `pyproject.toml` within `project_dir`.

    If no file / no `[tool.findtree]` table exists, returns defaults.
    """

    pyproject_path = Path(project_dir) / "pyproject.toml"
    if not pyproject_path.exists():
        return FindTreeConfig()

    try:
        data = tomllib.loads(pyproject_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:  # pragma: no cover (rare)
        raise ConfigError(f"Invalid TOML in {pyproject_path}: {exc}") from exc

    tool_table = data.get("tool", {})
    if not isinstance(tool_table, dict):
        return FindTreeConfig()

    findtree_table = tool_table.get("findtree", {})
    if not isinstance(findtree_table, dict) or not findtree_table:
        return FindTreeConfig()

    return _parse_findtree_table(findtree_table)


def _parse_findtree_table(table: dict[str, Any]) -> FindTreeConfig:
    detect_useless = _validate_bool(
        _get(table, "detect-useless-suppressions", True), field_name="tool.findtree.detect-useless-suppressions"
    )
    show_suppressed = _validate_bool(_get(table, "show-suppressed", True), field_name="tool.findtree.show-suppressed")
    expand = _validate_bool(table.get("expand", True), field_name="tool.findtree.expand")

    active_raw = _get(table, "active-rules", None)
    active_rules: tuple[str, ...] | None = None
    if active_raw is not None:
        if not isinstance(active_raw, list) or any(not isinstance(v, str) for v in active_raw):
            raise ConfigError("`tool.findtree.active-rules` must be a list of strings.")
        active_rules = tuple(v.strip() for v in active_raw if v.strip())

    fmt_raw = table.get("format", DEFAULT_FORMAT)
    if not isinstance(fmt_raw, str) or fmt_raw.strip().lower() not in _FORMATS:
        raise ConfigError("`tool.findtree.format` must be one of: terminal, json.")

    return FindTreeConfig(
        detect_useless_suppressions=detect_useless,
        show_suppressed=show_suppressed,
        active_rules=active_rules,
        expand=expand,
        format=cast(OutputFormat, fmt_raw.strip().lower()),
    )


def _get(table: dict[str, Any], key: str, default: Any) -> Any:
    # Accept both `kebab-case` and `snake_case` keys.
    return table.get(key, table.get(key.replace("-", "_"), default))


def _validate_bool(value: Any, *, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"`{field_name}` must be a boolean.")
    return value
