"""GeoJSON, SVG, PNG and HTML export of a sampled cell set."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

from .config import AppConfig
from .grid import GridIndexProvider
from .render import Drawing, render_png, render_svg
from .util import write_json, write_text


EXPORT_FORMATS = ("geojson", "svg", "png", "html")

_LOGGER = logging.getLogger("h3vector.export")


@dataclass(slots=True)
class ExportReport:
    output_dir: Path | None = None
    written: dict[str, Path] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)


def export_filename(resolution: int, region_name: str, ext: str) -> str:
    return f"h3-hexagons-res{resolution}-{region_name}.{ext}"


def build_geojson(cells: Sequence[str], provider: GridIndexProvider) -> dict[str, Any]:
    """FeatureCollection with one Polygon feature per cell."""
    features: list[dict[str, Any]] = []
    for cell in cells:
        features.append(
            {
                "type": "Feature",
                "properties": {
                    "h3Index": cell,
                    "resolution": provider.resolution_of(cell),
                    "isPentagon": provider.is_pentagon(cell),
                },
                "geometry": provider.geojson_polygon(cell),
            }
        )
    return {"type": "FeatureCollection", "features": features}


def export_geojson(
    cells: Sequence[str],
    provider: GridIndexProvider,
    *,
    resolution: int,
    region_name: str,
    output_dir: Path,
) -> Path:
    path = output_dir / export_filename(resolution, region_name, "geojson")
    write_json(path, build_geojson(cells, provider), sort_keys=False)
    return path


def export_image(
    svg_markup: str,
    *,
    resolution: int,
    region_name: str,
    output_dir: Path,
) -> Path:
    """Write the rendered SVG markup unchanged."""
    path = output_dir / export_filename(resolution, region_name, "svg")
    write_text(path, svg_markup)
    return path


def export_png(
    drawing: Drawing,
    cfg: AppConfig,
    *,
    resolution: int,
    region_name: str,
    output_dir: Path,
) -> Path:
    path = output_dir / export_filename(resolution, region_name, "png")
    return render_png(drawing, cfg.style, cfg.png, path)


def run_exports(
    *,
    cfg: AppConfig,
    provider: GridIndexProvider,
    cells: Sequence[str],
    drawing: Drawing,
    page_html: str | None,
    resolution: int,
    region_name: str,
    formats: Sequence[str],
    output_dir: Path,
) -> ExportReport:
    report = ExportReport(output_dir=output_dir)
    if not cells:
        report.add_error("No hexagons to export.")
        return report
    unknown = sorted(set(formats) - set(EXPORT_FORMATS))
    if unknown:
        report.add_error("Unknown export formats: " + ", ".join(unknown))
        return report

    for fmt in dict.fromkeys(formats):
        try:
            if fmt == "geojson":
                path = export_geojson(
                    cells, provider, resolution=resolution, region_name=region_name, output_dir=output_dir
                )
            elif fmt == "svg":
                path = export_image(
                    render_svg(drawing, cfg.style),
                    resolution=resolution,
                    region_name=region_name,
                    output_dir=output_dir,
                )
            elif fmt == "png":
                path = export_png(
                    drawing, cfg, resolution=resolution, region_name=region_name, output_dir=output_dir
                )
            else:
                if page_html is None:
                    report.add_error("HTML export requested without a viewer page.")
                    continue
                path = output_dir / export_filename(resolution, region_name, "html")
                write_text(path, page_html)
        except Exception as exc:
            _LOGGER.exception("%s export failed", fmt)
            report.add_error(f"{fmt} export failed: {exc}")
            continue
        report.written[fmt] = path
        report.add_info(f"Wrote {fmt} export to {path}")
    return report


def format_export_lines(report: ExportReport) -> Sequence[str]:
    lines: list[str] = []
    lines.extend(f"[INFO] {msg}" for msg in report.infos)
    lines.extend(f"[WARN] {msg}" for msg in report.warnings)
    lines.extend(f"[ERROR] {msg}" for msg in report.errors)
    if report.ok:
        lines.append("[OK] Export completed with no errors.")
    return lines
