"""Bounded cell sampling over a region at a target resolution.

Three strategies are used, selected by region and resolution:

* ``base-cells``: global view at resolution <= 3. Every base cell is expanded
  to its descendants at the target resolution; expansion stops once the
  running total exceeds the cap, so the result can overshoot by one base
  cell's children unless ``trim_to_cap`` is set.
* ``global-lattice``: global view at resolution >= 4. A regular lat/lng
  lattice over the sphere is resolved point by point.
* ``region-lattice``: any other region. The lattice density follows the
  expected cell count and the region's aspect ratio.

Lattice strategies stop once ``cap`` points have been resolved and then
deduplicate in first-seen order. The result approximates coverage; thin
cells between lattice points can be missed.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Iterator

from .grid import GridIndexProvider
from .models import Region, SampledSet


_LOGGER = logging.getLogger("h3vector.sampling")

PATH_BASE_CELLS = "base-cells"
PATH_GLOBAL_LATTICE = "global-lattice"
PATH_REGION_LATTICE = "region-lattice"

BASE_CELL_MAX_RESOLUTION = 3


def cap_for_resolution(resolution: int) -> int:
    """Upper bound on sampled cells; bounds work, not accuracy."""
    if resolution <= 2:
        return 10000
    if resolution <= 4:
        return 5000
    if resolution <= 6:
        return 1000
    return 500


class CellSampler:
    """Produces a deduplicated, capped cell set for (resolution, region)."""

    def __init__(self, provider: GridIndexProvider, *, trim_to_cap: bool = False) -> None:
        self.provider = provider
        self.trim_to_cap = trim_to_cap

    def sample(self, resolution: int, region: Region) -> SampledSet:
        if isinstance(resolution, bool) or not isinstance(resolution, int) or resolution < 0:
            raise ValueError(f"resolution must be a non-negative integer, got {resolution!r}")
        cap = cap_for_resolution(resolution)
        t0 = time.perf_counter()

        if region.is_global and resolution <= BASE_CELL_MAX_RESOLUTION:
            cells = self._expand_base_cells(resolution, cap)
            path = PATH_BASE_CELLS
            visited = len(cells)
        elif region.is_global:
            lat_step = 180.0 / math.sqrt(cap)
            lng_step = 360.0 / math.sqrt(cap)
            cells, visited = self._sample_lattice(region, resolution, cap, lat_step, lng_step)
            path = PATH_GLOBAL_LATTICE
        else:
            lat_step, lng_step = region_lattice_steps(region, resolution, cap)
            cells, visited = self._sample_lattice(region, resolution, cap, lat_step, lng_step)
            path = PATH_REGION_LATTICE

        _LOGGER.debug(
            "sampled %d cells (res=%d, region=%s, path=%s, cap=%d, points=%d) in %.3fs",
            len(cells),
            resolution,
            region.name,
            path,
            cap,
            visited,
            time.perf_counter() - t0,
        )
        return SampledSet(
            cells=tuple(cells),
            resolution=resolution,
            region=region,
            cap=cap,
            path=path,
            points_visited=visited,
        )

    def _expand_base_cells(self, resolution: int, cap: int) -> list[str]:
        cells: list[str] = []
        for base_cell in self.provider.base_cells():
            cells.extend(self.provider.children_of(base_cell, resolution))
            if len(cells) > cap:
                _LOGGER.debug("base cell expansion passed cap %d with %d cells", cap, len(cells))
                break
        if self.trim_to_cap and len(cells) > cap:
            del cells[cap:]
        return cells

    def _sample_lattice(
        self,
        region: Region,
        resolution: int,
        cap: int,
        lat_step: float,
        lng_step: float,
    ) -> tuple[list[str], int]:
        resolved: list[str] = []
        for lat, lng in lattice_points(region, lat_step, lng_step):
            resolved.append(self.provider.cell_at(lat, lng, resolution))
            if len(resolved) >= cap:
                break
        return list(dict.fromkeys(resolved)), len(resolved)


def region_lattice_steps(region: Region, resolution: int, cap: int) -> tuple[float, float]:
    """Aspect-aware lattice steps sized to the expected cell count."""
    num_points = min(cap, 100 * 3**resolution)
    lat_range = region.lat_range
    lng_range = region.lng_range
    lat_step = lat_range / math.sqrt(num_points / (lng_range / lat_range))
    lng_step = lng_range / math.sqrt(num_points / (lat_range / lng_range))
    return (lat_step, lng_step)


def lattice_points(region: Region, lat_step: float, lng_step: float) -> Iterator[tuple[float, float]]:
    """Latitude-outer, longitude-inner lattice with inclusive bounds.

    Coordinates accumulate by repeated addition, so the last row or column
    depends on floating-point rounding of the step sum.
    """
    if lat_step <= 0 or lng_step <= 0:
        raise ValueError("lattice steps must be positive")
    lat = region.south
    while lat <= region.north:
        lng = region.west
        while lng <= region.east:
            yield (lat, lng)
            lng += lng_step
        lat += lat_step


def sample(provider: GridIndexProvider, resolution: int, region: Region, *, trim_to_cap: bool = False) -> SampledSet:
    return CellSampler(provider, trim_to_cap=trim_to_cap).sample(resolution, region)
