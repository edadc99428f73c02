"""Summary statistics for a sampled cell set."""

from __future__ import annotations

from typing import Iterable, Sequence

from .grid import GridIndexProvider
from .models import Stats


# Average cell area in km^2 per resolution (published H3 table, res 0-10).
CELL_AREA_KM2: tuple[float, ...] = (
    4250546.8477,
    607220.9782,
    86745.8540,
    12392.2663,
    1770.3095,
    252.9014,
    36.1292,
    5.1613,
    0.7373,
    0.1053,
    0.0150,
)

# Each refinement step splits a cell into roughly seven children.
APERTURE = 7


def approx_cell_area_km2(resolution: int) -> float:
    if resolution < 0:
        raise ValueError("resolution must be >= 0")
    if resolution < len(CELL_AREA_KM2):
        return CELL_AREA_KM2[resolution]
    last = len(CELL_AREA_KM2) - 1
    return CELL_AREA_KM2[last] / APERTURE ** (resolution - last)


def compute_stats(cells: Iterable[str], resolution: int, provider: GridIndexProvider) -> Stats:
    cell_list = list(cells)
    count = len(cell_list)
    pentagons = sum(1 for cell in cell_list if provider.is_pentagon(cell))
    area = count * approx_cell_area_km2(resolution) if count else 0.0
    return Stats(count=count, pentagons=pentagons, resolution=resolution, approx_area_km2=area)


def format_stats_lines(stats: Stats | None) -> Sequence[str]:
    if stats is None:
        return [
            "Hexagons: 0",
            "Pentagons: 0",
            "Resolution: -",
            "Approx. Area: 0 km²",
        ]
    return [
        f"Hexagons: {stats.count}",
        f"Pentagons: {stats.pentagons}",
        f"Resolution: {stats.resolution}",
        f"Approx. Area: {stats.approx_area_km2:.2f} km²",
    ]
