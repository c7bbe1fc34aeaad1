"""Typed configuration loader for `maptile.yaml`."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, cast

import yaml

from .errors import UnsupportedProjection
from .projection import Projection


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected integer for '{field_name}'")
    return value


def _bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"Expected bool for '{field_name}'")
    return value


def _optional_path(value: Any, field_name: str, root_dir: Path) -> Path | None:
    if value is None:
        return None
    p = Path(_str(value, field_name))
    return p if p.is_absolute() else root_dir / p


@dataclass(frozen=True, slots=True)
class FontConfig:
    path: Path | None = None
    size: int = 12

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> FontConfig:
        size = _int(raw.get("size", 12), "font.size")
        if size <= 0:
            raise ValueError("font.size must be > 0")
        return cls(path=_optional_path(raw.get("path"), "font.path", root_dir), size=size)


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    verbose: bool = False
    log_file: Path | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> LoggingConfig:
        return cls(
            verbose=_bool(raw.get("verbose", False), "logging.verbose"),
            log_file=_optional_path(raw.get("log_file"), "logging.log_file", root_dir),
        )


@dataclass(frozen=True, slots=True)
class RenderConfig:
    tile_size: int = 256
    projection: Projection = Projection.WEB_MERCATOR
    zoom: int = 0
    font: FontConfig = field(default_factory=FontConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> RenderConfig:
        tile_size = _int(raw.get("tile_size", 256), "tile_size")
        if tile_size <= 0:
            raise ValueError("tile_size must be > 0")
        zoom = _int(raw.get("zoom", 0), "zoom")
        if zoom < 0:
            raise ValueError("zoom must be >= 0")
        try:
            projection = Projection.parse(raw.get("projection", Projection.WEB_MERCATOR))
        except UnsupportedProjection as exc:
            raise ValueError(f"Invalid 'projection': {exc}") from exc

        font_raw = raw.get("font")
        logging_raw = raw.get("logging")
        return cls(
            tile_size=tile_size,
            projection=projection,
            zoom=zoom,
            font=(
                FontConfig()
                if font_raw is None
                else FontConfig.from_mapping(_mapping(font_raw, "font"), root_dir)
            ),
            logging=(
                LoggingConfig()
                if logging_raw is None
                else LoggingConfig.from_mapping(_mapping(logging_raw, "logging"), root_dir)
            ),
        )

    @classmethod
    def default(cls) -> RenderConfig:
        return cls()


def load_config(path: str | Path) -> RenderConfig:
    """Load and validate the YAML config file into typed settings."""
    cfg_path = Path(path).resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        return RenderConfig.default()
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level config must be a YAML mapping")
    return RenderConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path.parent)
