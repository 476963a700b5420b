"""
Slider-driven matrix shift field (matrix mode only).

Inputs are a circle's *target* slot, the two sliders, the matrix geometry and
the current mode. All three outputs read the same anisotropic, center-boosted
distance field:

  offset    -> Gaussian with k = falloff_power, scaled per axis by the shaped sliders
  opacity   -> base + (max - base) * effect_weight
  highlight -> highlight_max_opacity * effect_weight ** highlight_opacity_power

effect_weight is shared by opacity and highlight so both cues light up the
same region together.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np

from curves import EPSILON, clamp_unit, gaussian_falloff, power_curve, signed_power_curve
from layout import MatrixGeometry
from logger import get_logger
from modes import Mode
from params import MatrixShiftSettings

log = get_logger("matrix_shift")

Point = Tuple[float, float]

BOOST_POLICIES = ("shrink", "blend")


@dataclass
class ShiftSliders:
    x: float = 0.0
    y: float = 0.0

    def __post_init__(self):
        self.set(self.x, self.y)

    def set(self, x: float, y: float) -> None:
        self.x = float(np.clip(x, -1.0, 1.0))
        self.y = float(np.clip(y, -1.0, 1.0))

    def zero(self) -> None:
        self.x = 0.0
        self.y = 0.0


class MatrixShiftField:
    def __init__(self, settings: Optional[MatrixShiftSettings] = None,
                 sliders: Optional[ShiftSliders] = None,
                 mode_source: Callable[[], Mode] = lambda: Mode.MATRIX):
        self.settings = settings if settings is not None else MatrixShiftSettings()
        self.sliders = sliders if sliders is not None else ShiftSliders()
        self.mode_source = mode_source
        self.geometry = MatrixGeometry()
        self._warned_policies = set()

    # ========================= Gating =========================

    def active(self) -> bool:
        return self.mode_source() is Mode.MATRIX and bool(self.settings.is_enabled)

    def shaped_sliders(self) -> Tuple[float, float]:
        p = self.settings.input_curve_power
        return (signed_power_curve(self.sliders.x, p), signed_power_curve(self.sliders.y, p))

    # ========================= Distance field =========================

    def policy(self) -> str:
        """Boost policy in effect. Unknown values fall back to "shrink", warned once each."""
        p = self.settings.boost_policy
        if p in BOOST_POLICIES:
            return p
        if p not in self._warned_policies:
            self._warned_policies.add(p)
            log.warning("unknown boost_policy %r, using 'shrink' (expected one of %s)", p, BOOST_POLICIES)
        return "shrink"

    def _distance_and_boost(self, positions, policy):
        s = self.settings

        cx, cy = self.geometry.center
        half_w = max(float(self.geometry.half_size[0]), EPSILON)
        half_h = max(float(self.geometry.half_size[1]), EPSILON)

        nx = np.minimum(1.0, np.abs(positions[:, 0] - cx) / half_w)
        ny = np.minimum(1.0, np.abs(positions[:, 1] - cy) / half_h)

        ax = nx * float(s.horizontal_falloff_scale)
        ay = ny * float(s.vertical_falloff_scale)

        closeness = np.maximum(0.0, 1.0 - nx)
        boost = clamp_unit(s.horizontal_center_boost) * power_curve(closeness, s.horizontal_center_boost_power)

        if policy == "shrink":
            # shrinking the distance keeps a gradient; clamping would plateau
            ax = ax / (1.0 + boost)
        return np.hypot(ax, ay), boost

    def _field(self, positions: np.ndarray, k: float) -> np.ndarray:
        policy = self.policy()
        d, boost = self._distance_and_boost(positions, policy)
        g = np.asarray(gaussian_falloff(d, k), dtype=np.float64).reshape(-1)
        if policy == "blend":
            g = g + (1.0 - g) * boost
        return g

    # ========================= Vectorised =========================

    def effect_weights(self, positions) -> np.ndarray:
        p = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
        s = self.settings
        sx, sy = self.shaped_sliders()
        magnitude = max(abs(sx), abs(sy))
        if magnitude < EPSILON or len(p) == 0:
            return np.zeros(len(p), dtype=np.float64)

        field = self._field(p, s.opacity_falloff_power)
        input_weight = power_curve(min(1.0, magnitude), s.opacity_input_power)
        return np.clip(field * input_weight, 0.0, 1.0)

    def offsets(self, positions) -> np.ndarray:
        p = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
        out = np.zeros_like(p)
        if not self.active() or len(p) == 0:
            return out

        s = self.settings
        sx, sy = self.shaped_sliders()
        if max(abs(sx), abs(sy)) < EPSILON:
            return out

        g = self._field(p, s.falloff_power)
        out[:, 0] = float(s.max_x_offset) * sx * g
        out[:, 1] = float(s.max_y_offset) * sy * g
        return out

    def opacities(self, positions) -> np.ndarray:
        p = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
        s = self.settings
        base = float(s.base_opacity)
        if not (self.active() and s.opacity_enabled):
            return np.full(len(p), base, dtype=np.float64)
        return base + (float(s.max_opacity) - base) * self.effect_weights(p)

    def highlight_opacities(self, positions) -> np.ndarray:
        p = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
        s = self.settings
        if not (self.active() and s.highlight_enabled):
            return np.zeros(len(p), dtype=np.float64)
        w = self.effect_weights(p)
        return float(s.highlight_max_opacity) * np.asarray(power_curve(w, s.highlight_opacity_power)).reshape(-1)

    # ========================= Per circle =========================

    def effect_weight(self, position: Point) -> float:
        return float(self.effect_weights([position])[0])

    def offset(self, position: Point) -> Point:
        o = self.offsets([position])[0]
        return (float(o[0]), float(o[1]))

    def opacity(self, position: Point) -> float:
        return float(self.opacities([position])[0])

    def highlight_opacity(self, position: Point) -> float:
        return float(self.highlight_opacities([position])[0])
