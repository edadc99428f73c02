"""Domain models shared across viewer modules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Sequence


GLOBAL_REGION = "global"

COLOR_MODE_FIXED = "fixed"
COLOR_MODE_RANDOM = "random"
COLOR_MODE_PENTAGON = "pentagon"
COLOR_MODES = (COLOR_MODE_FIXED, COLOR_MODE_RANDOM, COLOR_MODE_PENTAGON)


def _require_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _require_number(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Expected numeric value for '{field_name}'")
    return float(value)


def normalize_color_mode(value: str) -> str:
    mode = value.strip().casefold()
    if mode not in COLOR_MODES:
        raise ValueError("color mode must be one of: " + ", ".join(COLOR_MODES))
    return mode


@dataclass(frozen=True, slots=True)
class Region:
    """Named geographic bounding box in degrees."""

    name: str
    west: float
    south: float
    east: float
    north: float

    def __post_init__(self) -> None:
        if not self.west < self.east:
            raise ValueError(f"Region '{self.name}': west must be < east")
        if not self.south < self.north:
            raise ValueError(f"Region '{self.name}': south must be < north")
        if self.west < -180.0 or self.east > 180.0:
            raise ValueError(f"Region '{self.name}': longitude bounds must be within [-180, 180]")
        if self.south < -90.0 or self.north > 90.0:
            raise ValueError(f"Region '{self.name}': latitude bounds must be within [-90, 90]")

    @classmethod
    def from_bounds(cls, name: str, bounds: Sequence[Any]) -> Region:
        if isinstance(bounds, (str, bytes)) or len(bounds) != 4:
            raise ValueError(f"Region '{name}': expected [west, south, east, north]")
        west, south, east, north = (
            _require_number(item, f"{name}[{idx}]") for idx, item in enumerate(bounds)
        )
        return cls(name=_require_str(name, "region name"), west=west, south=south, east=east, north=north)

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        return (self.west, self.south, self.east, self.north)

    @property
    def is_global(self) -> bool:
        return self.name == GLOBAL_REGION

    @property
    def lat_range(self) -> float:
        return self.north - self.south

    @property
    def lng_range(self) -> float:
        return self.east - self.west


@dataclass(frozen=True, slots=True)
class DrawingCoord:
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class SampledSet:
    """Deduplicated cells approximating one region at one resolution."""

    cells: tuple[str, ...]
    resolution: int
    region: Region
    cap: int
    path: str
    points_visited: int = 0

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self) -> Iterator[str]:
        return iter(self.cells)

    def __contains__(self, cell: object) -> bool:
        return cell in self.cells


@dataclass(frozen=True, slots=True)
class Stats:
    """Summary of a sampled set. The area is an approximation."""

    count: int
    pentagons: int
    resolution: int
    approx_area_km2: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "pentagons": self.pentagons,
            "resolution": self.resolution,
            "approx_area_km2": round(self.approx_area_km2, 2),
        }


@dataclass(frozen=True, slots=True)
class CellDetail:
    """Fields shown for the selected cell."""

    h3_index: str
    resolution: int
    is_pentagon: bool
    center: tuple[float, float]
    vertex_count: int

    @property
    def center_label(self) -> str:
        return ", ".join(f"{value:.6f}" for value in self.center)

    def to_dict(self) -> dict[str, Any]:
        return {
            "h3Index": self.h3_index,
            "resolution": self.resolution,
            "isPentagon": self.is_pentagon,
            "center": self.center_label,
            "vertices": self.vertex_count,
        }


@dataclass(frozen=True, slots=True)
class RenderOptions:
    color_mode: str = COLOR_MODE_FIXED
    show_outline: bool = False

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> RenderOptions:
        color_mode = normalize_color_mode(_require_str(raw.get("color_mode", COLOR_MODE_FIXED), "color_mode"))
        show_outline = raw.get("show_outline", False)
        if not isinstance(show_outline, bool):
            raise ValueError("Expected bool for 'show_outline'")
        return cls(color_mode=color_mode, show_outline=show_outline)
