import math

import pytest

from h3vector.grid import GridQueryError
from h3vector.models import Region
from h3vector.sampling import (
    PATH_BASE_CELLS,
    PATH_GLOBAL_LATTICE,
    PATH_REGION_LATTICE,
    CellSampler,
    cap_for_resolution,
    lattice_points,
    region_lattice_steps,
    sample,
)


@pytest.mark.parametrize(
    "resolution,expected",
    [(0, 10000), (2, 10000), (3, 5000), (4, 5000), (5, 1000), (6, 1000), (7, 500), (8, 500), (15, 500)],
)
def test_cap_staircase(resolution, expected):
    assert cap_for_resolution(resolution) == expected


def test_global_resolution_zero_returns_all_base_cells(fake_provider, catalog):
    result = sample(fake_provider, 0, catalog.get("global"))
    assert result.path == PATH_BASE_CELLS
    assert list(result.cells) == fake_provider.base_cells()
    assert len(result) == 122


def test_base_cell_expansion_overshoots_cap_by_at_most_one_base_cell(fake_provider, catalog):
    result = sample(fake_provider, 3, catalog.get("global"))
    per_base = 7**3
    assert result.cap == 5000
    assert 5000 < len(result) <= 5000 + per_base
    assert len(result) % per_base == 0
    assert len(set(result.cells)) == len(result)


def test_base_cell_expansion_can_trim_to_cap(fake_provider, catalog):
    result = sample(fake_provider, 3, catalog.get("global"), trim_to_cap=True)
    assert len(result) == 5000


def test_base_cell_expansion_keeps_all_cells_under_cap(fake_provider, catalog):
    result = sample(fake_provider, 1, catalog.get("global"))
    assert len(result) == 122 * 7


def test_global_lattice_stops_at_cap(fake_provider, catalog):
    result = sample(fake_provider, 4, catalog.get("global"))
    assert result.path == PATH_GLOBAL_LATTICE
    assert result.points_visited == 5000
    assert 0 < len(result) <= 5000
    assert len(set(result.cells)) == len(result)
    assert all(fake_provider.resolution_of(cell) == 4 for cell in result)


def test_region_lattice_respects_cap_and_resolution(fake_provider, catalog):
    result = sample(fake_provider, 8, catalog.get("australia"))
    assert result.path == PATH_REGION_LATTICE
    assert 0 < len(result) <= 500
    assert result.points_visited <= 500
    assert all(fake_provider.resolution_of(cell) == 8 for cell in result)


def test_region_lattice_deduplicates_in_first_seen_order(fake_provider):
    region = Region("box", 0.0, 0.0, 10.0, 10.0)
    result = sample(fake_provider, 0, region)
    # One 90-degree fake cell covers the whole box.
    assert result.cells == ("0|0|0",)
    assert result.points_visited > 1


def test_region_lattice_steps_follow_aspect_ratio(catalog):
    europe = catalog.get("europe")
    lat_step, lng_step = region_lattice_steps(europe, 1, cap_for_resolution(1))
    num_points = 300
    rows = europe.lat_range / lat_step
    cols = europe.lng_range / lng_step
    assert rows * cols == pytest.approx(num_points)
    assert lat_step == pytest.approx(lng_step)


def test_square_region_steps():
    region = Region("square", 0.0, 0.0, 30.0, 30.0)
    lat_step, lng_step = region_lattice_steps(region, 0, 10000)
    assert lat_step == pytest.approx(30.0 / math.sqrt(100))
    assert lng_step == pytest.approx(30.0 / math.sqrt(100))


def test_lattice_points_are_inclusive_and_latitude_major():
    region = Region("box", 0.0, 0.0, 2.0, 2.0)
    points = list(lattice_points(region, 1.0, 1.0))
    assert len(points) == 9
    assert points[0] == (0.0, 0.0)
    assert points[1] == (0.0, 1.0)
    assert points[-1] == (2.0, 2.0)


def test_provider_failure_aborts_sampling(make_provider, catalog):
    provider = make_provider(fail_cell_at=True)
    with pytest.raises(GridQueryError):
        sample(provider, 5, catalog.get("europe"))


def test_negative_resolution_rejected(fake_provider, catalog):
    with pytest.raises(ValueError):
        CellSampler(fake_provider).sample(-1, catalog.get("europe"))


def test_repeated_sampling_has_same_cardinality(fake_provider, catalog):
    sampler = CellSampler(fake_provider)
    first = sampler.sample(6, catalog.get("africa"))
    second = sampler.sample(6, catalog.get("africa"))
    assert len(first) == len(second)
    assert set(first.cells) == set(second.cells)
