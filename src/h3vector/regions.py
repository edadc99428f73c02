"""Region catalog loading and lookup."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, Mapping

import yaml

from .models import GLOBAL_REGION, Region


# Bounds are [west, south, east, north] in degrees.
BUILTIN_REGION_BOUNDS: dict[str, tuple[float, float, float, float]] = {
    "global": (-180.0, -90.0, 180.0, 90.0),
    "northAmerica": (-170.0, 5.0, -50.0, 70.0),
    "europe": (-10.0, 35.0, 40.0, 70.0),
    "asia": (60.0, 0.0, 150.0, 60.0),
    "africa": (-20.0, -35.0, 50.0, 37.0),
    "southAmerica": (-85.0, -60.0, -30.0, 15.0),
    "australia": (110.0, -45.0, 155.0, -10.0),
}


class UnknownRegionError(KeyError):
    """Raised when a region name is not in the catalog."""

    def __init__(self, name: str, known: Iterable[str]) -> None:
        self.name = name
        self.known = tuple(known)
        super().__init__(name)

    def __str__(self) -> str:
        return f"Unknown region '{self.name}'. Known regions: {', '.join(self.known)}"


class RegionCatalog:
    """Immutable, ordered mapping of region name to bounding box."""

    def __init__(self, regions: Iterable[Region]) -> None:
        by_name: dict[str, Region] = {}
        for region in regions:
            if region.name in by_name:
                raise ValueError(f"Duplicate region '{region.name}'")
            by_name[region.name] = region
        if GLOBAL_REGION not in by_name:
            raise ValueError(f"Region catalog must define '{GLOBAL_REGION}'")
        if by_name[GLOBAL_REGION].bounds != BUILTIN_REGION_BOUNDS[GLOBAL_REGION]:
            raise ValueError(f"Region '{GLOBAL_REGION}' must span the full sphere")
        self._regions = by_name

    @classmethod
    def builtin(cls) -> RegionCatalog:
        return cls(Region.from_bounds(name, bounds) for name, bounds in BUILTIN_REGION_BOUNDS.items())

    @classmethod
    def from_mapping(cls, raw: Mapping[str, object]) -> RegionCatalog:
        regions: list[Region] = []
        for name, bounds in raw.items():
            if not isinstance(name, str):
                raise ValueError("Region names must be strings")
            if not isinstance(bounds, (list, tuple)):
                raise ValueError(f"Region '{name}': expected [west, south, east, north]")
            regions.append(Region.from_bounds(name, bounds))
        return cls(regions)

    def get(self, name: str) -> Region:
        region = self._regions.get(name)
        if region is None:
            raise UnknownRegionError(name, self._regions)
        return region

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._regions)

    def __contains__(self, name: object) -> bool:
        return name in self._regions

    def __iter__(self) -> Iterator[Region]:
        return iter(self._regions.values())

    def __len__(self) -> int:
        return len(self._regions)


def load_regions(path: Path | None) -> RegionCatalog:
    """Load the region catalog from YAML, falling back to the built-in set."""
    if path is None or not path.exists():
        return RegionCatalog.builtin()
    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        return RegionCatalog.builtin()
    if not isinstance(raw, dict):
        raise ValueError(f"Expected mapping in {path}")
    return RegionCatalog.from_mapping(raw)


def display_name(name: str) -> str:
    return name[:1].upper() + name[1:]


def format_region_lines(catalog: RegionCatalog) -> list[str]:
    lines: list[str] = []
    for region in catalog:
        west, south, east, north = region.bounds
        lines.append(
            f"{region.name:<14} {display_name(region.name):<14} "
            f"W={west:g} S={south:g} E={east:g} N={north:g}"
        )
    return lines
