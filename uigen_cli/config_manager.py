"""Configuration manager for UIGen using TOML files."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Tuple

import toml

from . import config
from .errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FusionSettings:
    semantic_boost: float = config.SEMANTIC_BOOST
    keyword_boost: float = config.KEYWORD_BOOST
    max_results: int = config.MAX_FUSED_RESULTS
    provider_limit: int = config.PROVIDER_LIMIT


@dataclass(frozen=True)
class SynthesisSettings:
    max_popular_patterns: int = config.MAX_POPULAR_PATTERNS
    pitfall_score_threshold: float = config.PITFALL_SCORE_THRESHOLD
    accessibility_rating_threshold: float = config.ACCESSIBILITY_RATING_THRESHOLD


@dataclass(frozen=True)
class ReviewSettings:
    pass_score: int = config.PASS_SCORE
    error_penalty: int = config.ERROR_PENALTY
    warning_penalty: int = config.WARNING_PENALTY
    info_penalty: int = config.INFO_PENALTY
    high_penalty: int = config.HIGH_PENALTY
    medium_penalty: int = config.MEDIUM_PENALTY
    low_penalty: int = config.LOW_PENALTY


@dataclass(frozen=True)
class OptimizeSettings:
    points_per_label: int = config.POINTS_PER_LABEL


SECTIONS = {
    "fusion": FusionSettings,
    "synthesis": SynthesisSettings,
    "review": ReviewSettings,
    "optimize": OptimizeSettings,
}


def load_full_config() -> Dict[str, Any]:
    """Load the entire TOML config (all sections).

    A missing file yields an empty dict. A file that cannot be parsed is
    logged and treated as empty so the defaults apply.
    """
    if not config.CONFIG_FILE.exists():
        return {}
    try:
        with open(config.CONFIG_FILE, "r") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", config.CONFIG_FILE, exc)
        return {}


def _save_full_config(data: Dict[str, Any]) -> None:
    config.ensure_base_dirs()
    with open(config.CONFIG_FILE, "w") as f:
        toml.dump(data, f)


def _build(settings_cls, section: Dict[str, Any]):
    values = {}
    for f in fields(settings_cls):
        if f.name not in section:
            continue
        try:
            values[f.name] = _coerce(f.type, section[f.name])
        except (TypeError, ValueError):
            logger.warning(
                "Ignoring invalid value %r for '%s'", section[f.name], f.name,
            )
    return settings_cls(**values)


def _coerce(type_name: Any, value: Any):
    # Annotations are strings under ``from __future__ import annotations``.
    name = type_name if isinstance(type_name, str) else type_name.__name__
    if name == "int":
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(value)
        return int(value)
    return float(value)


def load_fusion_settings() -> FusionSettings:
    return _build(FusionSettings, load_full_config().get("fusion", {}))


def load_synthesis_settings() -> SynthesisSettings:
    return _build(SynthesisSettings, load_full_config().get("synthesis", {}))


def load_review_settings() -> ReviewSettings:
    return _build(ReviewSettings, load_full_config().get("review", {}))


def load_optimize_settings() -> OptimizeSettings:
    return _build(OptimizeSettings, load_full_config().get("optimize", {}))


def effective_settings() -> Dict[str, Dict[str, Any]]:
    """Return every section's effective values (file merged over defaults)."""
    full = load_full_config()
    return {
        name: asdict(_build(cls, full.get(name, {})))
        for name, cls in SECTIONS.items()
    }


def _split_key(dotted_key: str) -> Tuple[str, str]:
    section, _, key = dotted_key.partition(".")
    if section not in SECTIONS:
        raise ConfigError(
            f"Unknown section '{section}'. Available: {', '.join(SECTIONS)}"
        )
    known = {f.name: f.type for f in fields(SECTIONS[section])}
    if key not in known:
        raise ConfigError(
            f"Unknown key '{key}' in [{section}]. Available: {', '.join(known)}"
        )
    return section, key


def set_value(dotted_key: str, raw_value: str) -> Any:
    """Validate and persist ``section.key = value``.

    Preserves every other section in the file.

    Returns:
        The coerced value that was written.
    """
    section, key = _split_key(dotted_key)
    type_name = {f.name: f.type for f in fields(SECTIONS[section])}[key]
    try:
        value = _coerce(type_name, raw_value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid value '{raw_value}' for {dotted_key}") from exc
    if value < 0:
        raise ConfigError(f"{dotted_key} must not be negative")

    full = load_full_config()
    full.setdefault(section, {})[key] = value
    _save_full_config(full)
    return value


def reset_config() -> bool:
    """Delete the config file. Returns True if a file was removed."""
    if config.CONFIG_FILE.exists():
        config.CONFIG_FILE.unlink()
        return True
    return False
