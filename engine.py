"""
MatrixEngine: the one object a presentation layer talks to.

    engine = MatrixEngine(params=Params())
    engine.set_viewport(Rect.of_size(400, 800))     # full re-layout
    engine.set_pointer((x, y)) / engine.set_pointer(None)
    engine.set_shift_sliders(x, y)                   # clamped to [-1, 1]
    engine.animate_to_matrix() / engine.reset_to_random_movement()
    engine.pump()                                    # run due ticks / timers
    frame = engine.frame()                           # positions, opacities, highlights

Params may be a Params object or a plain dict; missing knobs use defaults.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from attraction import AttractionField
from layout import MatrixGeometry, Rect, frame_bounds, grid_targets, matrix_geometry
from logger import get_logger
from matrix_shift import MatrixShiftField, ShiftSliders
from modes import Mode, ModeController
from params import AttractionSettings, MatrixShiftSettings, Params, pget, settings_from
from particles import ParticleStore
from scheduler import Scheduler
from sim import RandomMotionSimulator

log = get_logger("engine")

Point = Tuple[float, float]


@dataclass(frozen=True)
class RenderFrame:
    positions: np.ndarray     # Nx2, store position + both offsets
    opacities: np.ndarray     # N, max(attraction, shift)
    highlights: np.ndarray    # N, shift highlight overlay
    mode: Mode

    def __len__(self) -> int:
        return len(self.opacities)


@dataclass(frozen=True)
class RenderState:
    position: Point
    opacity: float
    highlight: float


class MatrixEngine:
    def __init__(self, params=None, scheduler: Optional[Scheduler] = None):
        self.params = params if params is not None else Params()
        p = self.params

        self.rows = max(0, int(pget(p, "rows", 20)))
        self.columns = max(0, int(pget(p, "columns", 12)))
        self.gap = float(pget(p, "gap", 32.0))
        self.circle_size = float(pget(p, "circle_size", 3.0))
        self.frame_padding = float(pget(p, "frame_padding", 200.0))

        self.attraction_settings = settings_from(pget(p, "attraction"), AttractionSettings)
        self.matrix_shift_settings = settings_from(pget(p, "matrix_shift"), MatrixShiftSettings)

        self.scheduler = scheduler if scheduler is not None else Scheduler()
        self.store = ParticleStore()
        self.sliders = ShiftSliders()
        self.simulator = RandomMotionSimulator(self.store, p)
        self.modes = ModeController(self.store, self.simulator, self.scheduler, self.sliders, p)

        self.attraction = AttractionField(self.attraction_settings)
        self.matrix_shift = MatrixShiftField(
            self.matrix_shift_settings, self.sliders, mode_source=lambda: self.modes.mode
        )

        self.viewport: Optional[Rect] = None
        self.geometry = MatrixGeometry()
        self.frame_bounds = Rect()

    # ========================= Read-only state =========================

    @property
    def mode(self) -> Mode:
        return self.modes.mode

    @property
    def is_animating_to_matrix(self) -> bool:
        return self.modes.is_animating_to_matrix

    @property
    def shift_controls_visible(self) -> bool:
        # the slider UI only makes sense once the grid has settled
        return self.modes.mode is Mode.MATRIX

    @property
    def pointer(self) -> Optional[Point]:
        return self.attraction.pointer

    @property
    def count(self) -> int:
        return len(self.store)

    # ========================= Inputs =========================

    def set_viewport(self, bounds: Rect) -> None:
        """Full re-layout: new targets, fresh random particles, back to random mode."""
        if not isinstance(bounds, Rect):
            bounds = Rect(*bounds)
        self.viewport = bounds
        self.frame_bounds = frame_bounds(bounds, self.frame_padding)
        self.geometry = matrix_geometry(bounds, self.rows, self.columns, self.gap)
        self.simulator.frame_bounds = self.frame_bounds
        self.matrix_shift.geometry = self.geometry

        # stop timers before the old particles go away
        self.modes.shutdown()

        targets = grid_targets(bounds, self.rows, self.columns, self.gap)
        n = len(targets)
        positions = self.simulator.random_positions(n)
        velocities, speeds = self.simulator.random_velocities(n)
        self.store.reset(positions, velocities, targets, speeds)

        self.modes.relayout()
        log.debug("layout %dx%d grid in %.0fx%.0f viewport", self.rows, self.columns,
                  bounds.width, bounds.height)

    setup_circles = set_viewport

    def set_pointer(self, pointer: Optional[Point]) -> None:
        self.attraction.set_pointer(pointer)

    def set_shift_sliders(self, x: float, y: float) -> None:
        self.sliders.set(x, y)

    def animate_to_matrix(self) -> bool:
        return self.modes.animate_to_matrix()

    def reset_to_random_movement(self) -> None:
        self.modes.reset_to_random_movement()

    def toggle_mode(self) -> None:
        """Organize button: organize from random, otherwise reset."""
        if self.modes.mode is Mode.RANDOM:
            self.animate_to_matrix()
        else:
            self.reset_to_random_movement()

    def tick(self) -> bool:
        return self.simulator.tick()

    def pump(self, now: Optional[float] = None) -> int:
        return self.scheduler.run_pending(now)

    def shutdown(self) -> None:
        self.modes.shutdown()

    # ========================= Outputs =========================

    def render_positions(self) -> np.ndarray:
        pos = self.store.positions
        return pos + self.attraction.offsets(pos) + self.matrix_shift.offsets(self.store.targets)

    def render_opacities(self) -> np.ndarray:
        return np.maximum(
            self.attraction.opacities(self.store.positions),
            self.matrix_shift.opacities(self.store.targets),
        )

    def render_highlights(self) -> np.ndarray:
        return self.matrix_shift.highlight_opacities(self.store.targets)

    def frame(self) -> RenderFrame:
        return RenderFrame(
            positions=self.render_positions(),
            opacities=self.render_opacities(),
            highlights=self.render_highlights(),
            mode=self.modes.mode,
        )

    def render_state(self, index: int) -> RenderState:
        c = self.store.particle(index)
        ax, ay = self.attraction.offset(c.position)
        sx, sy = self.matrix_shift.offset(c.target_position)
        return RenderState(
            position=(c.position[0] + ax + sx, c.position[1] + ay + sy),
            opacity=max(self.attraction.opacity(c.position), self.matrix_shift.opacity(c.target_position)),
            highlight=self.matrix_shift.highlight_opacity(c.target_position),
        )
