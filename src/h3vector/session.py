"""Viewer application state and generation lifecycle.

Every change publishes a new immutable ``ViewState``. Generation runs in two
phases: ``begin_generation`` marks the state as loading and hands out a
token; ``complete_generation`` samples, summarizes and publishes the result
only if no newer generation has started since. A superseded result is
dropped rather than overwriting newer state.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace

from .config import AppConfig
from .grid import GridIndexProvider, GridQueryError, describe_cell
from .models import CellDetail, RenderOptions, SampledSet, Stats, normalize_color_mode
from .projection import Projector
from .regions import RegionCatalog
from .render import Drawing, build_drawing
from .sampling import CellSampler
from .stats import compute_stats


_LOGGER = logging.getLogger("h3vector.session")


@dataclass(frozen=True, slots=True)
class ViewState:
    resolution: int
    region: str
    cells: tuple[str, ...] = ()
    stats: Stats | None = None
    selected: str | None = None
    loading: bool = False
    generation: int = 0
    options: RenderOptions = RenderOptions()
    sampled: SampledSet | None = None


@dataclass(frozen=True, slots=True)
class GenerationToken:
    generation: int
    resolution: int
    region: str


class ViewerSession:
    """Single-session viewer state with serialized publication."""

    def __init__(
        self,
        cfg: AppConfig,
        provider: GridIndexProvider,
        catalog: RegionCatalog,
    ) -> None:
        self.cfg = cfg
        self.provider = provider
        self.catalog = catalog
        self.sampler = CellSampler(provider, trim_to_cap=cfg.sampling.trim_to_cap)
        self._lock = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None
        viewer = cfg.viewer
        catalog.get(viewer.default_region)
        self._state = ViewState(
            resolution=viewer.default_resolution,
            region=viewer.default_region,
            options=viewer.options,
        )

    @property
    def state(self) -> ViewState:
        return self._state

    def begin_generation(self, resolution: int | None = None, region: str | None = None) -> GenerationToken:
        """Phase 1: mark loading, clear the selection and issue a token."""
        resolution = self._state.resolution if resolution is None else resolution
        region = self._state.region if region is None else region
        if resolution not in self.cfg.viewer.resolutions:
            bounds = self.cfg.viewer.resolutions
            raise ValueError(f"resolution must be between {bounds.min} and {bounds.max}, got {resolution!r}")
        self.catalog.get(region)
        with self._lock:
            generation = self._state.generation + 1
            self._state = replace(
                self._state,
                resolution=resolution,
                region=region,
                selected=None,
                loading=True,
                generation=generation,
            )
        return GenerationToken(generation=generation, resolution=resolution, region=region)

    def complete_generation(self, token: GenerationToken) -> ViewState:
        """Phase 2: sample and publish, unless a newer generation exists.

        Provider failures publish an empty snapshot. Any other exception also
        clears the loading flag before it propagates.
        """
        region = self.catalog.get(token.region)
        t0 = time.perf_counter()
        sampled: SampledSet | None = None
        stats: Stats | None = None
        try:
            sampled = self.sampler.sample(token.resolution, region)
            stats = compute_stats(sampled.cells, token.resolution, self.provider)
        except GridQueryError as exc:
            _LOGGER.error(
                "Error generating hexagons (res=%d, region=%s): %s",
                token.resolution,
                token.region,
                exc,
            )
            sampled = None
            stats = None
        except Exception:
            _LOGGER.exception(
                "Unexpected failure generating hexagons (res=%d, region=%s)",
                token.resolution,
                token.region,
            )
            self._publish(token, None, None)
            raise

        if not self._publish(token, sampled, stats):
            return self._state
        _LOGGER.info(
            "Generated %d hexagons (res=%d, region=%s) in %.3fs",
            len(sampled.cells) if sampled is not None else 0,
            token.resolution,
            token.region,
            time.perf_counter() - t0,
        )
        return self._state

    def _publish(self, token: GenerationToken, sampled: SampledSet | None, stats: Stats | None) -> bool:
        with self._lock:
            if token.generation != self._state.generation:
                _LOGGER.info(
                    "Dropping stale generation %d (current is %d)",
                    token.generation,
                    self._state.generation,
                )
                return False
            self._state = replace(
                self._state,
                cells=sampled.cells if sampled is not None else (),
                stats=stats,
                sampled=sampled,
                selected=None,
                loading=False,
            )
        return True

    def regenerate(self, resolution: int | None = None, region: str | None = None) -> ViewState:
        return self.complete_generation(self.begin_generation(resolution, region))

    def submit(self, resolution: int | None = None, region: str | None = None) -> Future[ViewState]:
        """Run phase 2 on the background worker; phase 1 happens immediately."""
        token = self.begin_generation(resolution, region)
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="h3vector-gen")
        return self._executor.submit(self.complete_generation, token)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def select(self, cell: str) -> ViewState:
        """Toggle selection of ``cell``."""
        with self._lock:
            selected = None if self._state.selected == cell else cell
            self._state = replace(self._state, selected=selected)
        return self._state

    def clear_selection(self) -> ViewState:
        with self._lock:
            self._state = replace(self._state, selected=None)
        return self._state

    def set_color_mode(self, color_mode: str) -> ViewState:
        mode = normalize_color_mode(color_mode)
        with self._lock:
            self._state = replace(self._state, options=replace(self._state.options, color_mode=mode))
        return self._state

    def set_show_outline(self, show_outline: bool) -> ViewState:
        with self._lock:
            self._state = replace(self._state, options=replace(self._state.options, show_outline=show_outline))
        return self._state

    def detail(self) -> CellDetail | None:
        selected = self._state.selected
        if selected is None:
            return None
        return describe_cell(self.provider, selected)

    def projector(self) -> Projector:
        canvas = self.cfg.viewer.canvas
        return Projector(self.catalog.get(self._state.region), canvas.width, canvas.height, canvas.padding)

    def drawing(self) -> Drawing:
        state = self._state
        return build_drawing(
            state.cells,
            projector=self.projector(),
            provider=self.provider,
            options=state.options,
            style=self.cfg.style,
            selected=state.selected,
        )
