import math

import pytest

from h3vector.models import DrawingCoord
from h3vector.projection import Projector, mercator_n, project

W, H, PAD = 800, 500, 50


def test_region_corners_map_to_padded_canvas_corners(catalog):
    region = catalog.get("australia")
    projector = Projector(region, W, H, PAD)
    assert projector.project(region.north, region.west) == DrawingCoord(PAD, PAD)
    assert projector.project(region.north, region.east) == DrawingCoord(W - PAD, PAD)
    assert projector.project(region.south, region.west) == DrawingCoord(PAD, H - PAD)
    assert projector.project(region.south, region.east) == DrawingCoord(W - PAD, H - PAD)


def test_region_projection_is_linear(catalog):
    region = catalog.get("europe")
    mid_lat = (region.north + region.south) / 2
    mid_lng = (region.east + region.west) / 2
    coord = project(mid_lat, mid_lng, region, W, H, PAD)
    assert coord.x == pytest.approx(W / 2)
    assert coord.y == pytest.approx(H / 2)


def test_latitude_increases_upward(catalog):
    projector = Projector(catalog.get("asia"), W, H, PAD)
    assert projector.project(50.0, 100.0).y < projector.project(10.0, 100.0).y


def test_global_longitude_spans_padded_width(catalog):
    projector = Projector(catalog.get("global"), W, H, PAD)
    assert projector.project(0.0, -180.0).x == pytest.approx(PAD)
    assert projector.project(0.0, 180.0).x == pytest.approx(W - PAD)
    assert projector.project(0.0, 0.0).x == pytest.approx(W / 2)


def test_global_equator_uses_width_scaled_mercator(catalog):
    projector = Projector(catalog.get("global"), W, H, PAD)
    assert projector.project(0.0, 0.0).y == pytest.approx(H / 2 + PAD)

    lat = 45.0
    expected = H / 2 - (W - 2 * PAD) * math.log(math.tan(math.pi / 4 + lat * math.pi / 360)) / (2 * math.pi) + PAD
    assert projector.project(lat, 10.0).y == pytest.approx(expected)


def test_global_projection_is_symmetric_about_equator(catalog):
    projector = Projector(catalog.get("global"), W, H, PAD)
    north = projector.project(60.0, 0.0).y
    south = projector.project(-60.0, 0.0).y
    assert north + south == pytest.approx(H + 2 * PAD)


def test_mercator_grows_toward_poles():
    assert mercator_n(0.0) == pytest.approx(0.0)
    assert mercator_n(85.0) > mercator_n(60.0) > 0
    assert mercator_n(-89.9) < mercator_n(-60.0) < 0


def test_project_ring_keeps_order(catalog):
    projector = Projector(catalog.get("europe"), W, H, PAD)
    ring = [(35.0, -10.0), (70.0, 40.0)]
    assert projector.project_ring(ring) == [DrawingCoord(PAD, H - PAD), DrawingCoord(W - PAD, PAD)]
