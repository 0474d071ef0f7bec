"""Formatting options supplied by the caller for each format call."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_INDENT_WIDTH = 2
DEFAULT_MAX_LINE_LENGTH = 80
DEFAULT_ITERATION_FACTOR = 4
DEFAULT_MAX_DEPTH = 64

# Host settings keys (camelCase) -> FormatConfig attribute names.
_SETTING_ALIASES: Dict[str, str] = {
    "indentSize": "indent_width",
    "indentWidth": "indent_width",
    "indent_size": "indent_width",
    "maxLineLength": "max_line_length",
    "wrapLongLines": "wrap_long_lines",
    "iterationFactor": "iteration_factor",
    "maxDepth": "max_depth",
}

_POSITIVE_INTS = ("indent_width", "max_line_length", "iteration_factor", "max_depth")


class ConfigurationFault(ValueError):
    """Raised in strict mode when an option is out of range."""


@dataclass(frozen=True)
class FormatConfig:
    indent_width: int = DEFAULT_INDENT_WIDTH
    max_line_length: int = DEFAULT_MAX_LINE_LENGTH
    wrap_long_lines: bool = False
    # Parser loops may run at most iteration_factor * (line count + 1) times.
    iteration_factor: int = DEFAULT_ITERATION_FACTOR
    max_depth: int = DEFAULT_MAX_DEPTH

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> FormatConfig:
        """Build a config from a settings mapping, ignoring unknown keys."""
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in data.items():
            name = _SETTING_ALIASES.get(key, key)
            if name in known:
                values[name] = value
        return cls(**values).validated()

    def validated(self, *, strict: bool = False) -> FormatConfig:
        """Return a config whose numeric options are all positive integers.

        Out-of-range values are clamped to 1 and values that are not integers
        fall back to the field default. With ``strict=True`` the first bad
        value raises ConfigurationFault instead.
        """
        defaults = FormatConfig()
        changes: Dict[str, Any] = {}

        for name in _POSITIVE_INTS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                if strict:
                    raise ConfigurationFault(f"{name} must be an integer, got {value!r}")
                fixed = getattr(defaults, name)
            elif value < 1:
                if strict:
                    raise ConfigurationFault(f"{name} must be positive, got {value}")
                fixed = 1
            else:
                continue
            logger.warning("Invalid %s %r, using %d", name, value, fixed)
            changes[name] = fixed

        if not isinstance(self.wrap_long_lines, bool):
            changes["wrap_long_lines"] = bool(self.wrap_long_lines)

        return replace(self, **changes) if changes else self


def resolve_config(config: Any) -> FormatConfig:
    """Accept a FormatConfig, a settings mapping or None."""
    if config is None:
        return FormatConfig()
    if isinstance(config, FormatConfig):
        return config.validated()
    if isinstance(config, Mapping):
        return FormatConfig.from_mapping(config)
    raise ConfigurationFault(f"Unsupported config type: {type(config).__name__}")
