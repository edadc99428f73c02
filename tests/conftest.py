import math
from pathlib import Path

import pytest

from h3vector.config import AppConfig
from h3vector.grid import GridQueryError
from h3vector.regions import RegionCatalog


class FakeGridProvider:
    """Square-cell stand-in for the grid provider.

    Cell ids are "res|row|col"; a cell at resolution r spans 90 / 2**r degrees.
    """

    def __init__(self, pentagons=(), fail_cell_at=False, fail_union=False, base_count=122):
        self.pentagons = set(pentagons)
        self.fail_cell_at = fail_cell_at
        self.fail_union = fail_union
        self.base_count = base_count
        self.cell_at_calls = 0

    @staticmethod
    def size(resolution):
        return 90.0 / 2**resolution

    def cell_at(self, lat, lng, resolution):
        self.cell_at_calls += 1
        if self.fail_cell_at or not -90 <= lat <= 90 or not -180 <= lng <= 180 or resolution > 15:
            raise GridQueryError("cell_at", f"invalid point ({lat}, {lng}) at res {resolution}")
        size = self.size(resolution)
        return f"{resolution}|{math.floor(lat / size)}|{math.floor(lng / size)}"

    def _parse(self, cell):
        try:
            res, row, col = (int(part) for part in cell.split("|"))
        except ValueError as exc:
            raise GridQueryError("parse", f"invalid cell {cell!r}") from exc
        return res, row, col

    def boundary_of(self, cell, geo_json=False):
        res, row, col = self._parse(cell)
        size = self.size(res)
        south, west = row * size, col * size
        ring = [(south, west), (south, west + size), (south + size, west + size), (south + size, west)]
        if not geo_json:
            return ring
        swapped = [(lng, lat) for lat, lng in ring]
        return swapped + [swapped[0]]

    def centroid_of(self, cell, geo_json=False):
        res, row, col = self._parse(cell)
        size = self.size(res)
        lat, lng = (row + 0.5) * size, (col + 0.5) * size
        return (lng, lat) if geo_json else (lat, lng)

    def resolution_of(self, cell):
        return self._parse(cell)[0]

    def base_cells(self):
        return [f"0|{idx}|0" for idx in range(self.base_count)]

    def children_of(self, cell, resolution):
        _, base, _ = self._parse(cell)
        if resolution == 0:
            return [cell]
        return [f"{resolution}|{base}|{k}" for k in range(7**resolution)]

    def is_pentagon(self, cell):
        return cell in self.pentagons

    def union_to_multipolygon(self, cells, geo_json=False):
        if self.fail_union:
            raise GridQueryError("union_to_multipolygon", "non-contiguous cells")
        return [[self.boundary_of(cell, geo_json=geo_json)] for cell in cells]

    def geojson_polygon(self, cell):
        return {"type": "Polygon", "coordinates": [[list(point) for point in self.boundary_of(cell, geo_json=True)]]}


@pytest.fixture
def fake_provider():
    return FakeGridProvider()


@pytest.fixture
def catalog():
    return RegionCatalog.builtin()


@pytest.fixture
def make_cfg(tmp_path: Path):
    def _make(**sections):
        raw = {
            "paths": {
                "exports_dir": str(tmp_path / "exports"),
                "logs_dir": str(tmp_path / "logs"),
            },
        }
        for key, value in sections.items():
            raw[key] = {**raw.get(key, {}), **value}
        return AppConfig.from_mapping(raw)

    return _make


@pytest.fixture
def cfg(make_cfg):
    return make_cfg()


@pytest.fixture
def make_provider():
    return FakeGridProvider
