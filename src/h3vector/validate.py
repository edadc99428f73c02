"""Validation of config, region catalog and grid provider."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .config import AppConfig
from .grid import GridIndexProvider, GridQueryError
from .regions import RegionCatalog, load_regions


RES0_BASE_CELL_COUNT = 122
PENTAGONS_PER_RESOLUTION = 12


@dataclass(slots=True)
class ValidationReport:
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


class Validator:
    """Checks that a viewer session could start with this configuration."""

    def __init__(self, cfg: AppConfig, provider: GridIndexProvider) -> None:
        self.cfg = cfg
        self.provider = provider

    def run(self) -> ValidationReport:
        report = ValidationReport()
        catalog = self._validate_regions(report)
        self._validate_viewer(report, catalog)
        self._validate_provider(report)
        self._validate_directories(report)
        return report

    def _validate_regions(self, report: ValidationReport) -> RegionCatalog | None:
        path = self.cfg.paths.regions
        if path is not None and not path.exists():
            report.add_warning(f"Regions file not found, using built-in catalog: {path}")
        try:
            catalog = load_regions(path)
        except Exception as exc:
            report.add_error(f"Failed parsing regions file '{path}': {exc}")
            return None
        report.add_info(f"Loaded {len(catalog)} regions: {', '.join(catalog.names)}")
        return catalog

    def _validate_viewer(self, report: ValidationReport, catalog: RegionCatalog | None) -> None:
        viewer = self.cfg.viewer
        canvas = viewer.canvas
        report.add_info(
            f"Canvas {canvas.width}x{canvas.height} (padding {canvas.padding}), "
            f"resolutions {viewer.resolutions.min}-{viewer.resolutions.max}"
        )
        if catalog is not None and viewer.default_region not in catalog:
            report.add_error(f"viewer.default_region '{viewer.default_region}' is not in the region catalog")

    def _validate_provider(self, report: ValidationReport) -> None:
        try:
            probe = self.provider.cell_at(0.0, 0.0, 0)
            base_cells = self.provider.base_cells()
            pentagons = sum(1 for cell in base_cells if self.provider.is_pentagon(cell))
        except GridQueryError as exc:
            report.add_error(f"Grid provider probe failed: {exc}")
            return
        if probe not in base_cells:
            report.add_error(f"Probe cell {probe} is not a base cell")
        if len(base_cells) != RES0_BASE_CELL_COUNT:
            report.add_error(f"Expected {RES0_BASE_CELL_COUNT} base cells but found {len(base_cells)}")
        if pentagons != PENTAGONS_PER_RESOLUTION:
            report.add_error(f"Expected {PENTAGONS_PER_RESOLUTION} base pentagons but found {pentagons}")
        report.add_info(f"Grid provider OK: {len(base_cells)} base cells, {pentagons} pentagons")

    def _validate_directories(self, report: ValidationReport) -> None:
        for path in self.cfg.paths.build_directories:
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                report.add_error(f"Cannot create output directory {path}: {exc}")


def format_report_lines(report: ValidationReport) -> Sequence[str]:
    lines: list[str] = []
    lines.extend(f"[INFO] {msg}" for msg in report.infos)
    lines.extend(f"[WARN] {msg}" for msg in report.warnings)
    lines.extend(f"[ERROR] {msg}" for msg in report.errors)
    if report.ok:
        lines.append("[OK] Validation passed with no errors.")
    return lines
