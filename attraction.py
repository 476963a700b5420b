"""
Pointer attraction field.

Pure read functions of (position, pointer, settings); nothing here mutates
particle state. Works in any mode.

offset:  pulls a circle toward the pointer, hard zero at `radius`
opacity: brightens circles near the pointer, inside `opacity_radius`
"""

from __future__ import annotations
from typing import Optional, Tuple

import numpy as np

from curves import EPSILON, power_curve, smoothstep
from params import AttractionSettings

Point = Tuple[float, float]


def _points(positions) -> np.ndarray:
    return np.asarray(positions, dtype=np.float64).reshape(-1, 2)


class AttractionField:
    def __init__(self, settings: Optional[AttractionSettings] = None):
        self.settings = settings if settings is not None else AttractionSettings()
        self.pointer: Optional[Point] = None

    def set_pointer(self, pointer: Optional[Point]) -> None:
        # latest value wins; None = no pointer down
        self.pointer = None if pointer is None else (float(pointer[0]), float(pointer[1]))

    # ========================= Vectorised =========================

    def offsets(self, positions, pointer: Optional[Point] = None) -> np.ndarray:
        p = _points(positions)
        out = np.zeros_like(p)
        s = self.settings
        touch = self.pointer if pointer is None else pointer
        if not s.is_enabled or touch is None or len(p) == 0:
            return out

        delta = np.asarray(touch, dtype=np.float64)[None, :] - p
        dist = np.hypot(delta[:, 0], delta[:, 1])

        radius = max(float(s.radius), EPSILON)
        inside = (dist < radius) & (dist >= EPSILON)
        if not np.any(inside):
            return out

        d = dist[inside]
        t = np.clip(1.0 - d / radius, 0.0, 1.0)
        w = power_curve(smoothstep(t), s.falloff_power)
        magnitude = float(s.max_offset) * power_curve(w, s.strength_curve_power)

        # unit vector toward the pointer
        out[inside] = delta[inside] / d[:, None] * magnitude[:, None]
        return out

    def opacities(self, positions, pointer: Optional[Point] = None) -> np.ndarray:
        p = _points(positions)
        s = self.settings
        base = float(s.base_opacity)
        out = np.full(len(p), base, dtype=np.float64)
        touch = self.pointer if pointer is None else pointer
        if not (s.is_enabled and s.opacity_enabled) or touch is None or len(p) == 0:
            return out

        delta = np.asarray(touch, dtype=np.float64)[None, :] - p
        dist = np.hypot(delta[:, 0], delta[:, 1])

        radius = max(float(s.opacity_radius), EPSILON)
        inside = dist < radius
        if not np.any(inside):
            return out

        t = np.clip(1.0 - dist[inside] / radius, 0.0, 1.0)
        w = power_curve(smoothstep(t), s.opacity_falloff_power)
        out[inside] = base + (float(s.max_opacity) - base) * w
        return out

    # ========================= Per circle =========================

    def offset(self, position: Point, pointer: Optional[Point] = None) -> Point:
        o = self.offsets([position], pointer)[0]
        return (float(o[0]), float(o[1]))

    def opacity(self, position: Point, pointer: Optional[Point] = None) -> float:
        return float(self.opacities([position], pointer)[0])
