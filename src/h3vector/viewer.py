"""Clickable HTML viewer page around the rendered SVG map."""

from __future__ import annotations

import json
from html import escape
from typing import Sequence

from .config import StyleConfig
from .grid import GridIndexProvider, describe_cell
from .models import CellDetail, Stats
from .regions import display_name
from .stats import format_stats_lines


def collect_cell_details(cells: Sequence[str], provider: GridIndexProvider) -> dict[str, CellDetail]:
    return {cell: describe_cell(provider, cell) for cell in cells}


def build_viewer_html(
    *,
    svg_markup: str,
    stats: Stats | None,
    details: dict[str, CellDetail],
    resolution: int,
    region_name: str,
    color_mode: str,
    style: StyleConfig,
    selected: str | None = None,
) -> str:
    """Standalone page: stats bar, map, and a detail panel toggled by clicks.

    ``svg_markup`` is expected without a selection highlight; ``selected`` is
    painted client-side so the toggle can restore the unselected fill.
    """
    stats_items = "\n".join(f"    <span>{escape(line)}</span>" for line in format_stats_lines(stats))
    details_json = json.dumps(
        {cell: detail.to_dict() for cell, detail in details.items()},
        sort_keys=True,
    ).replace("</", "<\\/")
    title = f"H3 hexagons · resolution {resolution} · {display_name(region_name)}"
    script = "\n".join(
        [
            "  <script>",
            f"    const DETAILS = {details_json};",
            f"    const SELECTED_FILL = {json.dumps(style.selected_fill)};",
            f"    let selected = {json.dumps(selected)};",
            "    const svg = document.getElementById('h3-map-svg');",
            "    const panel = document.getElementById('detail');",
            "    function pathFor(cell) {",
            "      return svg.querySelector(`path[data-h3-index=\"${cell}\"]`);",
            "    }",
            "    function paint(cell, on) {",
            "      const path = pathFor(cell);",
            "      if (!path) return;",
            "      if (!path.dataset.fill) path.dataset.fill = path.getAttribute('fill');",
            "      path.setAttribute('fill', on ? SELECTED_FILL : path.dataset.fill);",
            "    }",
            "    function show(cell) {",
            "      const d = DETAILS[cell];",
            "      if (!cell || !d) { panel.hidden = true; return; }",
            "      document.getElementById('d-index').textContent = d.h3Index;",
            "      document.getElementById('d-res').textContent = d.resolution;",
            "      document.getElementById('d-pent').textContent = d.isPentagon ? 'Yes' : 'No';",
            "      document.getElementById('d-center').textContent = d.center;",
            "      document.getElementById('d-vertices').textContent = d.vertices;",
            "      panel.hidden = false;",
            "    }",
            "    function select(cell) {",
            "      if (selected) paint(selected, false);",
            "      selected = selected === cell ? null : cell;",
            "      if (selected) paint(selected, true);",
            "      show(selected);",
            "    }",
            "    svg.addEventListener('click', (event) => {",
            "      const path = event.target.closest('path[data-h3-index]');",
            "      if (path) select(path.dataset.h3Index);",
            "    });",
            "    document.getElementById('d-close').addEventListener('click', () => {",
            "      if (selected) select(selected);",
            "    });",
            "    if (selected) paint(selected, true);",
            "    show(selected);",
            "  </script>",
        ]
    )
    return "\n".join(
        [
            "<!doctype html>",
            "<html lang='en'>",
            "<head>",
            "  <meta charset='utf-8'>",
            "  <meta name='viewport' content='width=device-width, initial-scale=1'>",
            f"  <title>{escape(title)}</title>",
            "  <style>",
            "    body { font-family: Arial, sans-serif; margin: 16px; background: #eee; }",
            "    .stats { display: flex; flex-wrap: wrap; gap: 16px; font-size: 14px; color: #444; }",
            "    .map { position: relative; background: #fff; border-radius: 6px; margin-top: 12px; }",
            "    .map svg { width: 100%; height: auto; }",
            "    .map path[data-h3-index] { cursor: pointer; }",
            "    #detail {",
            "      position: absolute; top: 16px; right: 16px; background: #fff;",
            "      padding: 12px 16px; border-radius: 6px; box-shadow: 0 2px 8px rgba(0,0,0,.25);",
            "    }",
            "    #detail p { margin: 4px 0; }",
            "  </style>",
            "</head>",
            "<body>",
            f"  <h1>{escape(title)}</h1>",
            f"  <p>Color mode: {escape(color_mode)}. Area is approximate (sampled cells × mean cell area).</p>",
            "  <div class='stats'>",
            stats_items,
            "  </div>",
            "  <div class='map'>",
            svg_markup.rstrip("\n"),
            "    <div id='detail' hidden>",
            "      <h3>Hexagon Details</h3>",
            "      <p><strong>H3 Index:</strong> <span id='d-index'></span></p>",
            "      <p><strong>Resolution:</strong> <span id='d-res'></span></p>",
            "      <p><strong>Pentagon:</strong> <span id='d-pent'></span></p>",
            "      <p><strong>Center:</strong> <span id='d-center'></span></p>",
            "      <p><strong>Vertices:</strong> <span id='d-vertices'></span></p>",
            "      <button id='d-close' type='button'>Close</button>",
            "    </div>",
            "  </div>",
            script,
            "</body>",
            "</html>",
            "",
        ]
    )
