"""CLI entrypoint for the h3 vector viewer."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from .config import AppConfig, load_config
from .export import EXPORT_FORMATS, format_export_lines, run_exports
from .grid import GridIndexProvider, GridQueryError, H3GridProvider, describe_cell, format_cell_detail_lines
from .inspect_report import format_inspection_lines, generate_inspection_report
from .models import COLOR_MODES
from .regions import RegionCatalog, UnknownRegionError, format_region_lines, load_regions
from .render import build_drawing, render_svg
from .session import ViewerSession
from .stats import format_stats_lines
from .util import ensure_directories, setup_logging
from .validate import Validator, format_report_lines
from .viewer import build_viewer_html, collect_cell_details

LOGGER = logging.getLogger("h3vector.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="h3vector",
        description="Sample, render and export hexagonal grid cells over a region.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", default="config.yaml", help="Path to YAML config.")
        p.add_argument("--verbose", action="store_true", help="Enable debug logs.")

    def add_view(p: argparse.ArgumentParser) -> None:
        p.add_argument("--resolution", type=int, default=None, help="Grid resolution (default from config).")
        p.add_argument("--region", default=None, help="Region catalog key (default from config).")

    validate_p = subparsers.add_parser("validate", help="Validate config, regions and grid provider.")
    add_common(validate_p)

    regions_p = subparsers.add_parser("regions", help="List the region catalog.")
    add_common(regions_p)

    generate_p = subparsers.add_parser("generate", help="Sample cells and print statistics.")
    add_common(generate_p)
    add_view(generate_p)

    export_p = subparsers.add_parser("export", help="Sample cells and write export files.")
    add_common(export_p)
    add_view(export_p)
    export_p.add_argument(
        "--format",
        action="append",
        choices=EXPORT_FORMATS,
        default=[],
        help="Export format. Can be repeated (default: geojson and svg).",
    )
    export_p.add_argument("--color-mode", choices=COLOR_MODES, default=None, help="Cell colouring mode.")
    export_p.add_argument("--outline", action="store_true", help="Draw the dashed union outline.")
    export_p.add_argument("--select", default=None, help="Cell to highlight as selected.")
    export_p.add_argument("--output-dir", default=None, help="Override paths.exports_dir.")

    cell_p = subparsers.add_parser("inspect-cell", help="Show detail fields for one cell.")
    add_common(cell_p)
    cell_p.add_argument("cell", help="Cell index, e.g. 8928308280fffff.")

    inspect_p = subparsers.add_parser(
        "inspect",
        help="Write sampling diagnostics (cap use, duplicates, coverage) as JSON.",
    )
    add_common(inspect_p)
    add_view(inspect_p)

    return parser


def _load_and_setup(args: argparse.Namespace) -> AppConfig:
    cfg = load_config(args.config)
    setup_logging(cfg.paths.logs_dir / "h3vector.log", verbose=args.verbose)
    ensure_directories(cfg.paths.build_directories)
    return cfg


def _run_validate(cfg: AppConfig, provider: GridIndexProvider) -> int:
    report = Validator(cfg, provider).run()
    for line in format_report_lines(report):
        LOGGER.info(line)
    return 0 if report.ok else 1


def _run_regions(catalog: RegionCatalog) -> int:
    for line in format_region_lines(catalog):
        LOGGER.info(line)
    return 0


def _run_generate(session: ViewerSession, *, resolution: int | None, region: str | None) -> int:
    state = session.regenerate(resolution, region)
    sampled = state.sampled
    if sampled is not None:
        LOGGER.info("Sampling path %s, cap %d, points visited %d", sampled.path, sampled.cap, sampled.points_visited)
    for line in format_stats_lines(state.stats):
        LOGGER.info(line)
    return 0 if state.stats is not None else 1


def _run_export(
    cfg: AppConfig,
    session: ViewerSession,
    *,
    resolution: int | None,
    region: str | None,
    formats: Sequence[str],
    color_mode: str | None,
    outline: bool,
    select: str | None,
    output_dir: Path | None,
) -> int:
    if color_mode is not None:
        session.set_color_mode(color_mode)
    if outline:
        session.set_show_outline(True)
    state = session.regenerate(resolution, region)
    if state.stats is None:
        LOGGER.error("No hexagons generated; nothing to export.")
        return 1
    if select is not None:
        if select in state.cells:
            state = session.select(select)
        else:
            LOGGER.warning("Selected cell %s is not in the sampled set; ignoring.", select)

    effective_formats = list(formats) or ["geojson", "svg"]
    drawing = session.drawing()
    page_html: str | None = None
    if "html" in effective_formats:
        unselected = drawing
        if state.selected is not None:
            unselected = build_drawing(
                state.cells,
                projector=session.projector(),
                provider=session.provider,
                options=state.options,
                style=cfg.style,
            )
        page_html = build_viewer_html(
            svg_markup=render_svg(unselected, cfg.style),
            stats=state.stats,
            details=collect_cell_details(state.cells, session.provider),
            resolution=state.resolution,
            region_name=state.region,
            color_mode=state.options.color_mode,
            style=cfg.style,
            selected=state.selected,
        )

    report = run_exports(
        cfg=cfg,
        provider=session.provider,
        cells=state.cells,
        drawing=drawing,
        page_html=page_html,
        resolution=state.resolution,
        region_name=state.region,
        formats=effective_formats,
        output_dir=output_dir or cfg.paths.exports_dir,
    )
    for line in format_export_lines(report):
        LOGGER.info(line)
    return 0 if report.ok else 1


def _run_inspect_cell(provider: GridIndexProvider, cell: str) -> int:
    try:
        detail = describe_cell(provider, cell)
    except GridQueryError as exc:
        LOGGER.error("Cell lookup failed: %s", exc)
        return 1
    for line in format_cell_detail_lines(detail):
        LOGGER.info(line)
    return 0


def _run_inspect(
    cfg: AppConfig,
    provider: GridIndexProvider,
    catalog: RegionCatalog,
    *,
    resolution: int | None,
    region: str | None,
) -> int:
    try:
        json_path, payload = generate_inspection_report(
            cfg,
            provider=provider,
            catalog=catalog,
            resolution=cfg.viewer.default_resolution if resolution is None else resolution,
            region_name=cfg.viewer.default_region if region is None else region,
        )
    except Exception as exc:
        LOGGER.error("Inspection report failed: %s", exc)
        return 1
    for line in format_inspection_lines(payload):
        LOGGER.info(line)
    LOGGER.info("Inspection JSON report written to %s", json_path)
    return 0


def _dispatch(args: argparse.Namespace) -> int:
    cfg = _load_and_setup(args)
    command = str(args.command)
    provider = H3GridProvider()
    if command == "validate":
        return _run_validate(cfg, provider)

    catalog = load_regions(cfg.paths.regions)
    if command == "regions":
        return _run_regions(catalog)
    if command == "inspect-cell":
        return _run_inspect_cell(provider, str(args.cell))
    if command == "inspect":
        return _run_inspect(cfg, provider, catalog, resolution=args.resolution, region=args.region)

    if args.region is not None and args.region not in catalog:
        LOGGER.error("%s", UnknownRegionError(args.region, catalog.names))
        return 2
    if args.resolution is not None and args.resolution not in cfg.viewer.resolutions:
        bounds = cfg.viewer.resolutions
        LOGGER.error("--resolution must be between %d and %d", bounds.min, bounds.max)
        return 2
    session = ViewerSession(cfg, provider, catalog)
    if command == "generate":
        return _run_generate(session, resolution=args.resolution, region=args.region)
    if command == "export":
        return _run_export(
            cfg,
            session,
            resolution=args.resolution,
            region=args.region,
            formats=[str(item) for item in args.format],
            color_mode=args.color_mode,
            outline=bool(args.outline),
            select=args.select,
            output_dir=Path(args.output_dir) if args.output_dir else None,
        )
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    return _dispatch(args)


if __name__ == "__main__":
    raise SystemExit(main())
