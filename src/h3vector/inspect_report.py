"""Sampling diagnostics for one (resolution, region) pair."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Sequence

from .config import AppConfig
from .grid import GridIndexProvider
from .models import Region, SampledSet
from .regions import RegionCatalog
from .sampling import CellSampler
from .stats import compute_stats
from .util import write_json


_LOGGER = logging.getLogger("h3vector.inspect")

# Cells wider than this in longitude straddle the antimeridian.
_MAX_PLANAR_LNG_SPAN = 180.0


def generate_inspection_report(
    cfg: AppConfig,
    *,
    provider: GridIndexProvider,
    catalog: RegionCatalog,
    resolution: int,
    region_name: str,
) -> tuple[Path, dict[str, Any]]:
    """Sample once and write a JSON report of cap use, duplicates and coverage."""
    region = catalog.get(region_name)
    sampler = CellSampler(provider, trim_to_cap=cfg.sampling.trim_to_cap)
    t0 = time.perf_counter()
    sampled = sampler.sample(resolution, region)
    elapsed = time.perf_counter() - t0
    stats = compute_stats(sampled.cells, resolution, provider)
    coverage = lattice_coverage(sampled, provider)

    payload: dict[str, Any] = {
        "meta": {
            "resolution": resolution,
            "region": region.name,
            "bounds": list(region.bounds),
            "path": sampled.path,
            "cap": sampled.cap,
            "trim_to_cap": cfg.sampling.trim_to_cap,
            "elapsed_s": round(elapsed, 4),
        },
        "sampling": {
            "points_visited": sampled.points_visited,
            "cells": len(sampled),
            "duplicate_ratio": _duplicate_ratio(sampled),
            "cap_reached": sampled.points_visited >= sampled.cap,
            "over_cap_by": max(len(sampled) - sampled.cap, 0),
        },
        "stats": stats.to_dict(),
        "coverage": coverage,
    }
    json_path = cfg.paths.exports_dir / f"inspect-res{resolution}-{region.name}.json"
    write_json(json_path, payload)
    return (json_path, payload)


def lattice_coverage(sampled: SampledSet, provider: GridIndexProvider) -> dict[str, Any]:
    """Share of the region box covered by sampled cells, in planar degrees.

    Approximate: planar degree area over-weights high latitudes.
    """
    box, polygon_factory, unary_union = _require_shapely()
    region: Region = sampled.region
    region_box = box(region.west, region.south, region.east, region.north)
    polygons: list[Any] = []
    skipped = 0
    for cell in sampled.cells:
        ring = provider.boundary_of(cell, geo_json=True)
        lngs = [point[0] for point in ring]
        if max(lngs) - min(lngs) > _MAX_PLANAR_LNG_SPAN:
            skipped += 1
            continue
        polygons.append(polygon_factory(ring))
    if not polygons:
        return {"covered_ratio": 0.0, "cells_used": 0, "cells_skipped_antimeridian": skipped}
    covered = unary_union(polygons).intersection(region_box)
    ratio = covered.area / region_box.area if region_box.area else 0.0
    return {
        "covered_ratio": round(float(ratio), 4),
        "cells_used": len(polygons),
        "cells_skipped_antimeridian": skipped,
    }


def format_inspection_lines(payload: dict[str, Any]) -> Sequence[str]:
    meta = payload["meta"]
    sampling = payload["sampling"]
    coverage = payload["coverage"]
    return [
        f"[INFO] res={meta['resolution']} region={meta['region']} path={meta['path']} cap={meta['cap']}",
        f"[INFO] points_visited={sampling['points_visited']} cells={sampling['cells']} "
        f"duplicate_ratio={sampling['duplicate_ratio']} over_cap_by={sampling['over_cap_by']}",
        f"[INFO] covered_ratio={coverage['covered_ratio']} "
        f"(cells_used={coverage['cells_used']}, skipped={coverage['cells_skipped_antimeridian']})",
    ]


def _duplicate_ratio(sampled: SampledSet) -> float:
    if sampled.points_visited <= 0:
        return 0.0
    return round(1.0 - len(sampled) / sampled.points_visited, 4)


def _require_shapely() -> tuple[Any, Any, Any]:
    try:
        from shapely.geometry import Polygon, box
        from shapely.ops import unary_union
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("shapely is required for coverage diagnostics") from exc
    return (box, Polygon, unary_union)
