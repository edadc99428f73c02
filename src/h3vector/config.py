"""Typed configuration loader for `config.yaml`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, cast

import yaml

from .models import COLOR_MODE_FIXED, RenderOptions


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _optional_mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    return _mapping(value, field_name)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected integer for '{field_name}'")
    return value


def _float(value: Any, field_name: str) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise ValueError(f"Expected float for '{field_name}'")


def _bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"Expected bool for '{field_name}'")
    return value


def _path_from_cfg(value: Any, field_name: str, root_dir: Path) -> Path:
    raw = _str(value, field_name)
    p = Path(raw)
    return p if p.is_absolute() else root_dir / p


@dataclass(frozen=True, slots=True)
class CanvasConfig:
    width: int = 800
    height: int = 500
    padding: int = 50

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> CanvasConfig:
        width = _int(raw.get("width", 800), "viewer.canvas.width")
        height = _int(raw.get("height", 500), "viewer.canvas.height")
        padding = _int(raw.get("padding", 50), "viewer.canvas.padding")
        if padding < 0:
            raise ValueError("viewer.canvas.padding must be >= 0")
        if 2 * padding >= width or 2 * padding >= height:
            raise ValueError("viewer.canvas.padding leaves no drawable area")
        return cls(width=width, height=height, padding=padding)


@dataclass(frozen=True, slots=True)
class ResolutionRangeConfig:
    min: int = 0
    max: int = 8

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ResolutionRangeConfig:
        low = _int(raw.get("min", 0), "viewer.resolutions.min")
        high = _int(raw.get("max", 8), "viewer.resolutions.max")
        if low < 0 or high > 15 or low > high:
            raise ValueError("viewer.resolutions must satisfy 0 <= min <= max <= 15")
        return cls(min=low, max=high)

    def __contains__(self, resolution: object) -> bool:
        return isinstance(resolution, int) and self.min <= resolution <= self.max


@dataclass(frozen=True, slots=True)
class ViewerConfig:
    canvas: CanvasConfig
    resolutions: ResolutionRangeConfig
    default_resolution: int
    default_region: str
    options: RenderOptions

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ViewerConfig:
        resolutions = ResolutionRangeConfig.from_mapping(
            _optional_mapping(raw.get("resolutions"), "viewer.resolutions")
        )
        default_resolution = _int(raw.get("default_resolution", 1), "viewer.default_resolution")
        if default_resolution not in resolutions:
            raise ValueError("viewer.default_resolution is outside viewer.resolutions")
        return cls(
            canvas=CanvasConfig.from_mapping(_optional_mapping(raw.get("canvas"), "viewer.canvas")),
            resolutions=resolutions,
            default_resolution=default_resolution,
            default_region=_str(raw.get("default_region", "global"), "viewer.default_region"),
            options=RenderOptions.from_mapping(
                {
                    "color_mode": raw.get("color_mode", COLOR_MODE_FIXED),
                    "show_outline": raw.get("show_outline", False),
                }
            ),
        )


@dataclass(frozen=True, slots=True)
class StyleConfig:
    fixed_fill: str = "#91bfdb"
    pentagon_fill: str = "#ff6b6b"
    selected_fill: str = "#fc8d59"
    cell_stroke: str = "#333333"
    cell_stroke_width: float = 0.5
    cell_opacity: float = 0.7
    outline_stroke: str = "#ff0000"
    outline_stroke_width: float = 1.5
    outline_dasharray: str = "5 3"
    hue_saturation_pct: int = 70
    hue_lightness_pct: int = 70

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> StyleConfig:
        d = cls()
        opacity = _float(raw.get("cell_opacity", d.cell_opacity), "style.cell_opacity")
        if not 0.0 <= opacity <= 1.0:
            raise ValueError("style.cell_opacity must be between 0 and 1")
        saturation = _int(raw.get("hue_saturation_pct", d.hue_saturation_pct), "style.hue_saturation_pct")
        lightness = _int(raw.get("hue_lightness_pct", d.hue_lightness_pct), "style.hue_lightness_pct")
        for name, pct in (("hue_saturation_pct", saturation), ("hue_lightness_pct", lightness)):
            if not 0 <= pct <= 100:
                raise ValueError(f"style.{name} must be between 0 and 100")
        return cls(
            fixed_fill=_str(raw.get("fixed_fill", d.fixed_fill), "style.fixed_fill"),
            pentagon_fill=_str(raw.get("pentagon_fill", d.pentagon_fill), "style.pentagon_fill"),
            selected_fill=_str(raw.get("selected_fill", d.selected_fill), "style.selected_fill"),
            cell_stroke=_str(raw.get("cell_stroke", d.cell_stroke), "style.cell_stroke"),
            cell_stroke_width=_float(raw.get("cell_stroke_width", d.cell_stroke_width), "style.cell_stroke_width"),
            cell_opacity=opacity,
            outline_stroke=_str(raw.get("outline_stroke", d.outline_stroke), "style.outline_stroke"),
            outline_stroke_width=_float(
                raw.get("outline_stroke_width", d.outline_stroke_width), "style.outline_stroke_width"
            ),
            outline_dasharray=_str(raw.get("outline_dasharray", d.outline_dasharray), "style.outline_dasharray"),
            hue_saturation_pct=saturation,
            hue_lightness_pct=lightness,
        )


@dataclass(frozen=True, slots=True)
class SamplingConfig:
    trim_to_cap: bool = False

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> SamplingConfig:
        return cls(trim_to_cap=_bool(raw.get("trim_to_cap", False), "sampling.trim_to_cap"))


@dataclass(frozen=True, slots=True)
class PngConfig:
    dpi: int = 100
    background: str = "white"

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> PngConfig:
        dpi = _int(raw.get("dpi", 100), "png.dpi")
        if dpi <= 0:
            raise ValueError("png.dpi must be > 0")
        return cls(dpi=dpi, background=_str(raw.get("background", "white"), "png.background"))


@dataclass(frozen=True, slots=True)
class PathsConfig:
    regions: Path | None
    exports_dir: Path
    logs_dir: Path

    @property
    def build_directories(self) -> tuple[Path, ...]:
        return (self.exports_dir, self.logs_dir)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> PathsConfig:
        regions_raw = raw.get("regions")
        return cls(
            regions=(
                _path_from_cfg(regions_raw, "paths.regions", root_dir) if regions_raw is not None else None
            ),
            exports_dir=_path_from_cfg(raw.get("exports_dir", "build/exports"), "paths.exports_dir", root_dir),
            logs_dir=_path_from_cfg(raw.get("logs_dir", "build/logs"), "paths.logs_dir", root_dir),
        )


@dataclass(frozen=True, slots=True)
class AppConfig:
    source_path: Path | None
    viewer: ViewerConfig
    style: StyleConfig
    sampling: SamplingConfig
    png: PngConfig
    paths: PathsConfig

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path | None = None) -> AppConfig:
        root_dir = source_path.parent.resolve() if source_path is not None else Path.cwd()
        return cls(
            source_path=source_path.resolve() if source_path is not None else None,
            viewer=ViewerConfig.from_mapping(_optional_mapping(raw.get("viewer"), "viewer")),
            style=StyleConfig.from_mapping(_optional_mapping(raw.get("style"), "style")),
            sampling=SamplingConfig.from_mapping(_optional_mapping(raw.get("sampling"), "sampling")),
            png=PngConfig.from_mapping(_optional_mapping(raw.get("png"), "png")),
            paths=PathsConfig.from_mapping(_optional_mapping(raw.get("paths"), "paths"), root_dir),
        )

    @classmethod
    def default(cls) -> AppConfig:
        return cls.from_mapping({})


def load_config(path: str | Path) -> AppConfig:
    """Load and validate the YAML config file into typed settings."""
    cfg_path = Path(path).resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level config must be a YAML mapping")
    return AppConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path)
