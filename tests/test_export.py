import json

from h3vector.export import (
    build_geojson,
    export_filename,
    format_export_lines,
    run_exports,
)
from h3vector.models import RenderOptions
from h3vector.projection import Projector
from h3vector.render import build_drawing

CELLS = ["1|0|0", "1|0|1", "1|1|0"]


def _drawing(cfg, provider, catalog):
    canvas = cfg.viewer.canvas
    projector = Projector(catalog.get("europe"), canvas.width, canvas.height, canvas.padding)
    return build_drawing(CELLS, projector=projector, provider=provider, options=RenderOptions(), style=cfg.style)


def test_export_filename():
    assert export_filename(5, "europe", "svg") == "h3-hexagons-res5-europe.svg"


def test_build_geojson_feature_per_cell(make_provider):
    provider = make_provider(pentagons={"1|0|1"})
    collection = build_geojson(CELLS, provider)
    assert collection["type"] == "FeatureCollection"
    features = collection["features"]
    assert [f["properties"]["h3Index"] for f in features] == CELLS
    assert features[1]["properties"]["isPentagon"] is True
    assert features[0]["properties"]["resolution"] == 1
    geometry = features[0]["geometry"]
    assert geometry["type"] == "Polygon"
    ring = geometry["coordinates"][0]
    assert ring[0] == ring[-1]


def test_run_exports_writes_requested_formats(cfg, fake_provider, catalog, tmp_path):
    report = run_exports(
        cfg=cfg,
        provider=fake_provider,
        cells=CELLS,
        drawing=_drawing(cfg, fake_provider, catalog),
        page_html="<html></html>",
        resolution=1,
        region_name="europe",
        formats=["geojson", "svg", "html", "svg"],
        output_dir=tmp_path,
    )
    assert report.ok
    assert set(report.written) == {"geojson", "svg", "html"}
    geojson_path = tmp_path / "h3-hexagons-res1-europe.geojson"
    assert report.written["geojson"] == geojson_path
    assert len(json.loads(geojson_path.read_text(encoding="utf-8"))["features"]) == 3
    assert (tmp_path / "h3-hexagons-res1-europe.svg").read_text(encoding="utf-8").startswith("<svg ")
    assert format_export_lines(report)[-1] == "[OK] Export completed with no errors."


def test_run_exports_refuses_empty_set(cfg, fake_provider, catalog, tmp_path):
    report = run_exports(
        cfg=cfg,
        provider=fake_provider,
        cells=[],
        drawing=_drawing(cfg, fake_provider, catalog),
        page_html=None,
        resolution=1,
        region_name="europe",
        formats=["geojson"],
        output_dir=tmp_path,
    )
    assert not report.ok
    assert report.written == {}
    assert list(tmp_path.iterdir()) == []


def test_run_exports_rejects_unknown_format(cfg, fake_provider, catalog, tmp_path):
    report = run_exports(
        cfg=cfg,
        provider=fake_provider,
        cells=CELLS,
        drawing=_drawing(cfg, fake_provider, catalog),
        page_html=None,
        resolution=1,
        region_name="europe",
        formats=["kml"],
        output_dir=tmp_path,
    )
    assert report.errors == ["Unknown export formats: kml"]


def test_html_export_requires_page(cfg, fake_provider, catalog, tmp_path):
    report = run_exports(
        cfg=cfg,
        provider=fake_provider,
        cells=CELLS,
        drawing=_drawing(cfg, fake_provider, catalog),
        page_html=None,
        resolution=1,
        region_name="europe",
        formats=["html", "geojson"],
        output_dir=tmp_path,
    )
    assert not report.ok
    assert set(report.written) == {"geojson"}
    assert any(line.startswith("[ERROR]") for line in format_export_lines(report))
