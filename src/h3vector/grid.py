"""Grid index provider interface and the h3-backed implementation."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Callable, Iterable, Protocol, Sequence

from .models import CellDetail


_LOGGER = logging.getLogger("h3vector.grid")

Point = tuple[float, float]
Ring = list[Point]
Polygon = list[Ring]


class GridQueryError(RuntimeError):
    """A grid index query failed (invalid coordinate, resolution or cell)."""

    def __init__(self, query: str, message: str) -> None:
        self.query = query
        super().__init__(f"{query} failed: {message}")


class GridIndexProvider(Protocol):
    """Query surface consumed by the sampler, statistics and render layers.

    Points are (lat, lng) unless ``geo_json`` is set, in which case they are
    (lng, lat) and rings are closed.
    """

    def cell_at(self, lat: float, lng: float, resolution: int) -> str: ...

    def boundary_of(self, cell: str, geo_json: bool = False) -> list[Point]: ...

    def centroid_of(self, cell: str, geo_json: bool = False) -> Point: ...

    def resolution_of(self, cell: str) -> int: ...

    def base_cells(self) -> list[str]: ...

    def children_of(self, cell: str, resolution: int) -> list[str]: ...

    def is_pentagon(self, cell: str) -> bool: ...

    def union_to_multipolygon(self, cells: Sequence[str], geo_json: bool = False) -> list[Polygon]: ...

    def geojson_polygon(self, cell: str) -> dict[str, Any]:
        """Export geometry in the provider's own GeoJSON convention; use ``boundary_of`` for drawing."""
        ...


class H3GridProvider:
    """Adapter over the ``h3`` (v4) Python bindings."""

    def __init__(self) -> None:
        self._h3 = _require_h3()

    def cell_at(self, lat: float, lng: float, resolution: int) -> str:
        return self._call("cell_at", self._h3.latlng_to_cell, lat, lng, resolution)

    def boundary_of(self, cell: str, geo_json: bool = False) -> list[Point]:
        boundary = self._call("boundary_of", self._h3.cell_to_boundary, cell)
        return _orient_ring(boundary, geo_json=geo_json)

    def centroid_of(self, cell: str, geo_json: bool = False) -> Point:
        lat, lng = self._call("centroid_of", self._h3.cell_to_latlng, cell)
        return (float(lng), float(lat)) if geo_json else (float(lat), float(lng))

    def resolution_of(self, cell: str) -> int:
        return int(self._call("resolution_of", self._h3.get_resolution, cell))

    def base_cells(self) -> list[str]:
        # Lexical order of res-0 indexes is base cell number order.
        return sorted(self._call("base_cells", self._h3.get_res0_cells))

    def children_of(self, cell: str, resolution: int) -> list[str]:
        return list(self._call("children_of", self._h3.cell_to_children, cell, resolution))

    def is_pentagon(self, cell: str) -> bool:
        return bool(self._call("is_pentagon", self._h3.is_pentagon, cell))

    def union_to_multipolygon(self, cells: Sequence[str], geo_json: bool = False) -> list[Polygon]:
        shape = self._call("union_to_multipolygon", self._h3.cells_to_h3shape, list(cells), tight=False)
        polygons: list[Polygon] = []
        for poly in shape:
            rings = [_orient_ring(poly.outer, geo_json=geo_json)]
            rings.extend(_orient_ring(hole, geo_json=geo_json) for hole in poly.holes)
            polygons.append(rings)
        return polygons

    def geojson_polygon(self, cell: str) -> dict[str, Any]:
        """GeoJSON Polygon for export, winding and closure as h3 emits them.

        ``boundary_of(cell, geo_json=True)`` gives the same ring for ordinary
        cells and feeds drawing and coverage; this one feeds file exports.
        """
        shape = self._call("geojson_polygon", self._h3.cells_to_h3shape, [cell], tight=True)
        geometry = shape.__geo_interface__
        return {
            "type": geometry["type"],
            "coordinates": _listify(geometry["coordinates"]),
        }

    def _call(self, query: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except (self._h3.H3BaseException, ValueError, TypeError) as exc:
            _LOGGER.debug("%s%r raised %s", query, args, exc)
            raise GridQueryError(query, str(exc) or type(exc).__name__) from exc


def describe_cell(provider: GridIndexProvider, cell: str) -> CellDetail:
    """Re-query the provider for the fields shown in the detail panel."""
    return CellDetail(
        h3_index=cell,
        resolution=provider.resolution_of(cell),
        is_pentagon=provider.is_pentagon(cell),
        center=provider.centroid_of(cell),
        vertex_count=len(provider.boundary_of(cell)),
    )


def format_cell_detail_lines(detail: CellDetail) -> list[str]:
    return [
        f"H3 Index: {detail.h3_index}",
        f"Resolution: {detail.resolution}",
        f"Pentagon: {'Yes' if detail.is_pentagon else 'No'}",
        f"Center: {detail.center_label}",
        f"Vertices: {detail.vertex_count}",
    ]


def _orient_ring(points: Iterable[Sequence[float]], *, geo_json: bool) -> list[Point]:
    ring = [(float(lat), float(lng)) for lat, lng in points]
    if not geo_json:
        return ring
    swapped = [(lng, lat) for lat, lng in ring]
    if swapped and swapped[0] != swapped[-1]:
        swapped.append(swapped[0])
    return swapped


def _listify(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [_listify(item) for item in value]
    return value


@lru_cache(maxsize=1)
def _require_h3() -> Any:
    try:
        import h3
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("h3 is required for grid index queries") from exc
    return h3
