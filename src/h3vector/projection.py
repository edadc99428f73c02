"""Geographic to drawing-space projection.

The global view uses a Mercator-style latitude transform whose vertical scale
is taken from the canvas width so both axes share the longitude scale. Other
regions map both axes linearly onto the padded canvas, latitude inverted.

Neither strategy handles antimeridian wraparound. Mercator ``y`` diverges as
latitude approaches +/-90 and is infinite at the poles themselves.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from .models import DrawingCoord, Region


@dataclass(frozen=True, slots=True)
class Projector:
    region: Region
    width: float
    height: float
    padding: float

    def project(self, lat: float, lng: float) -> DrawingCoord:
        if self.region.is_global:
            return _project_mercator(lat, lng, self.width, self.height, self.padding)
        return _project_linear(lat, lng, self.region, self.width, self.height, self.padding)

    def project_ring(self, points: Iterable[Sequence[float]]) -> list[DrawingCoord]:
        """Project (lat, lng) points."""
        return [self.project(lat, lng) for lat, lng in points]


def project(
    lat: float,
    lng: float,
    region: Region,
    canvas_w: float,
    canvas_h: float,
    padding: float,
) -> DrawingCoord:
    return Projector(region, canvas_w, canvas_h, padding).project(lat, lng)


def mercator_n(lat: float) -> float:
    t = math.tan(math.pi / 4 + lat * math.pi / 360)
    if t <= 0.0:
        return -math.inf
    return math.log(t)


def _project_mercator(lat: float, lng: float, width: float, height: float, padding: float) -> DrawingCoord:
    span = width - 2 * padding
    x = (lng + 180) * span / 360 + padding
    y = height / 2 - span * mercator_n(lat) / (2 * math.pi) + padding
    return DrawingCoord(x, y)


def _project_linear(
    lat: float,
    lng: float,
    region: Region,
    width: float,
    height: float,
    padding: float,
) -> DrawingCoord:
    west, south, east, north = region.bounds
    x = (lng - west) / (east - west) * (width - 2 * padding) + padding
    y = height - ((lat - south) / (north - south) * (height - 2 * padding) + padding)
    return DrawingCoord(x, y)
