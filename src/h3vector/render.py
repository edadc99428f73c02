"""Map drawing: cell colours, projected paths, outline and SVG/PNG output."""

from __future__ import annotations

import colorsys
import logging
import math
from dataclasses import dataclass
from html import escape
from pathlib import Path
from typing import Any, Sequence

from .config import PngConfig, StyleConfig
from .grid import GridIndexProvider, GridQueryError
from .models import COLOR_MODE_PENTAGON, COLOR_MODE_RANDOM, DrawingCoord, RenderOptions
from .projection import Projector
from .util import format_number


SVG_ELEMENT_ID = "h3-map-svg"

_LOGGER = logging.getLogger("h3vector.render")


@dataclass(frozen=True, slots=True)
class DrawnCell:
    cell: str
    points: tuple[DrawingCoord, ...]
    fill: str

    @property
    def path_data(self) -> str:
        return ring_path_data(self.points)


@dataclass(frozen=True, slots=True)
class DrawnOutline:
    rings: tuple[tuple[DrawingCoord, ...], ...]

    @property
    def path_data(self) -> str:
        return " ".join(ring_path_data(ring) for ring in self.rings)


@dataclass(frozen=True, slots=True)
class Drawing:
    width: int
    height: int
    cells: tuple[DrawnCell, ...]
    outline: tuple[DrawnOutline, ...] = ()


def color_hash(text: str) -> int:
    """Polynomial rolling hash ``acc = code + ((acc << 5) - acc)``.

    The shift wraps to a signed 32-bit integer while the subtraction does not,
    which keeps hues reproducible with browser renderings of the same cells.
    """
    acc = 0
    for ch in text:
        acc = ord(ch) + (_to_int32(acc << 5) - acc)
    return acc


def hash_hue(text: str) -> int:
    """Hue in (-360, 360); the remainder keeps the sign of the hash."""
    acc = color_hash(text)
    hue = abs(acc) % 360
    return -hue if acc < 0 else hue


def cell_color(
    cell: str,
    *,
    color_mode: str,
    selected: str | None,
    is_pentagon: bool,
    style: StyleConfig,
) -> str:
    if selected is not None and cell == selected:
        return style.selected_fill
    if color_mode == COLOR_MODE_RANDOM:
        return f"hsl({hash_hue(cell)}, {style.hue_saturation_pct}%, {style.hue_lightness_pct}%)"
    if color_mode == COLOR_MODE_PENTAGON:
        return style.pentagon_fill if is_pentagon else style.fixed_fill
    return style.fixed_fill


def ring_path_data(points: Sequence[DrawingCoord]) -> str:
    if not points:
        return ""
    parts = [
        f"{'M' if idx == 0 else 'L'} {format_number(point.x)} {format_number(point.y)}"
        for idx, point in enumerate(points)
    ]
    return " ".join(parts) + " Z"


def build_drawing(
    cells: Sequence[str],
    *,
    projector: Projector,
    provider: GridIndexProvider,
    options: RenderOptions,
    style: StyleConfig,
    selected: str | None = None,
) -> Drawing:
    drawn: list[DrawnCell] = []
    for cell in cells:
        points = tuple(projector.project_ring(provider.boundary_of(cell)))
        is_pentagon = options.color_mode == COLOR_MODE_PENTAGON and provider.is_pentagon(cell)
        fill = cell_color(
            cell,
            color_mode=options.color_mode,
            selected=selected,
            is_pentagon=is_pentagon,
            style=style,
        )
        drawn.append(DrawnCell(cell=cell, points=points, fill=fill))

    outline: tuple[DrawnOutline, ...] = ()
    if options.show_outline and cells:
        outline = _build_outline(cells, projector=projector, provider=provider)
    return Drawing(
        width=int(projector.width),
        height=int(projector.height),
        cells=tuple(drawn),
        outline=outline,
    )


def _build_outline(
    cells: Sequence[str],
    *,
    projector: Projector,
    provider: GridIndexProvider,
) -> tuple[DrawnOutline, ...]:
    try:
        polygons = provider.union_to_multipolygon(cells, geo_json=False)
    except GridQueryError as exc:
        _LOGGER.warning("Outline skipped; union of %d cells failed: %s", len(cells), exc)
        return ()
    return tuple(
        DrawnOutline(rings=tuple(tuple(projector.project_ring(ring)) for ring in polygon))
        for polygon in polygons
    )


def render_svg(drawing: Drawing, style: StyleConfig) -> str:
    """Standalone SVG document for the drawing."""
    lines = [
        (
            f"<svg xmlns='http://www.w3.org/2000/svg' id='{SVG_ELEMENT_ID}' "
            f"width='{drawing.width}' height='{drawing.height}' "
            f"viewBox='0 0 {drawing.width} {drawing.height}'>"
        )
    ]
    for item in drawing.cells:
        lines.append(
            f"  <path d='{item.path_data}' fill='{escape(item.fill)}' "
            f"stroke='{escape(style.cell_stroke)}' stroke-width='{format_number(style.cell_stroke_width)}' "
            f"opacity='{format_number(style.cell_opacity)}' data-h3-index='{escape(item.cell)}'>"
            f"<title>{escape(item.cell)}</title></path>"
        )
    if drawing.outline:
        lines.append("  <g class='outline'>")
        for outline in drawing.outline:
            lines.append(
                f"    <path d='{outline.path_data}' fill='none' "
                f"stroke='{escape(style.outline_stroke)}' "
                f"stroke-width='{format_number(style.outline_stroke_width)}' "
                f"stroke-dasharray='{escape(style.outline_dasharray)}'/>"
            )
        lines.append("  </g>")
    lines.append("</svg>")
    return "\n".join(lines) + "\n"


def render_png(drawing: Drawing, style: StyleConfig, png: PngConfig, output_path: Path) -> Path:
    """Rasterize the drawing with matplotlib using the same geometry and colours."""
    plt, patches, mpath = _require_matplotlib()
    dpi = png.dpi
    transparent = png.background.casefold() == "transparent"
    fig = plt.figure(figsize=(drawing.width / dpi, drawing.height / dpi), dpi=dpi)
    try:
        ax = fig.add_axes([0.0, 0.0, 1.0, 1.0])
        ax.set_xlim(0, drawing.width)
        ax.set_ylim(drawing.height, 0)
        ax.axis("off")
        if not transparent:
            fig.patch.set_facecolor(png.background)

        # SVG widths are in pixels, matplotlib's in points.
        px_to_pt = 72.0 / dpi
        for item in drawing.cells:
            if not _finite_ring(item.points):
                continue
            ax.add_patch(
                patches.Polygon(
                    [(point.x, point.y) for point in item.points],
                    closed=True,
                    facecolor=_mpl_color(item.fill),
                    edgecolor=style.cell_stroke,
                    linewidth=style.cell_stroke_width * px_to_pt,
                    alpha=style.cell_opacity,
                )
            )
        dashes = tuple(float(part) for part in style.outline_dasharray.split())
        for outline in drawing.outline:
            vertices: list[tuple[float, float]] = []
            codes: list[int] = []
            for ring in outline.rings:
                if not ring or not _finite_ring(ring):
                    continue
                vertices.extend((point.x, point.y) for point in ring)
                vertices.append((ring[0].x, ring[0].y))
                codes.append(mpath.Path.MOVETO)
                codes.extend([mpath.Path.LINETO] * (len(ring) - 1))
                codes.append(mpath.Path.CLOSEPOLY)
            if not vertices:
                continue
            ax.add_patch(
                patches.PathPatch(
                    mpath.Path(vertices, codes),
                    fill=False,
                    edgecolor=style.outline_stroke,
                    linewidth=style.outline_stroke_width * px_to_pt,
                    linestyle=(0, dashes) if dashes else "solid",
                )
            )

        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=dpi, format="png", transparent=transparent)
        return output_path
    finally:
        plt.close(fig)


def _mpl_color(fill: str) -> Any:
    if not fill.startswith("hsl("):
        return fill
    hue_raw, sat_raw, light_raw = (part.strip().rstrip("%") for part in fill[4:-1].split(","))
    hue = (float(hue_raw) % 360.0) / 360.0
    return colorsys.hls_to_rgb(hue, float(light_raw) / 100.0, float(sat_raw) / 100.0)


def _finite_ring(points: Sequence[DrawingCoord]) -> bool:
    return all(math.isfinite(point.x) and math.isfinite(point.y) for point in points)


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _require_matplotlib() -> tuple[Any, Any, Any]:
    try:
        import matplotlib

        matplotlib.use("Agg", force=False)
        import matplotlib.patches as patches
        import matplotlib.path as mpath
        import matplotlib.pyplot as plt
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("matplotlib is required for PNG rendering") from exc
    return (plt, patches, mpath)
