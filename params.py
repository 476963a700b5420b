from __future__ import annotations
from dataclasses import dataclass, fields


def pget(p, key, default=None):
    """Read a knob from either a dict or an attribute-style params object."""
    if p is None:
        return default
    if isinstance(p, dict):
        return p.get(key, default)
    return getattr(p, key, default)


@dataclass
class AttractionSettings:
    """Pointer attraction. Radii are in points (same units as the viewport)."""
    is_enabled: bool = True
    radius: float = 220.0           # movement influence radius
    max_offset: float = 14.0        # displacement when the pointer is very close
    falloff_power: float = 1.0      # higher = tighter around the pointer
    strength_curve_power: float = 1.0

    # Opacity uses its own radius; do not tie it to `radius`.
    opacity_enabled: bool = True
    opacity_radius: float = 160.0
    base_opacity: float = 0.35
    max_opacity: float = 1.0
    opacity_falloff_power: float = 1.0

    # Consumed by the presentation layer only.
    spring_response: float = 0.22
    spring_damping_fraction: float = 0.86
    spring_blend_duration: float = 0.0
    shows_touch_indicator: bool = False


@dataclass
class MatrixShiftSettings:
    """Slider-driven shift of the matrix. Only evaluated in matrix mode."""
    is_enabled: bool = True
    max_x_offset: float = 80.0
    max_y_offset: float = 80.0

    # Gaussian sharpness for movement (independent of the opacity/highlight weight).
    falloff_power: float = 2.0

    # Anisotropic decay: larger scale => faster decay along that axis.
    horizontal_falloff_scale: float = 0.8
    vertical_falloff_scale: float = 1.0

    # Extra emphasis near the vertical center line.
    horizontal_center_boost: float = 0.7
    horizontal_center_boost_power: float = 2.2
    # "shrink": divide horizontal distance by the boost factor
    # "blend":  move the weight toward 1 by the boost amount
    boost_policy: str = "shrink"

    input_curve_power: float = 1.0

    opacity_enabled: bool = True
    base_opacity: float = 0.35
    max_opacity: float = 1.0
    opacity_falloff_power: float = 2.5   # Gaussian k for the shared effect weight
    opacity_input_power: float = 1.0

    highlight_enabled: bool = True
    highlight_max_opacity: float = 0.85
    highlight_opacity_power: float = 1.5
    highlight_color: str = "#7FDD60"

    spring_response: float = 0.24
    spring_damping_fraction: float = 0.88
    spring_blend_duration: float = 0.0


def settings_from(value, cls):
    """Accept a settings instance, a dict of overrides, or None."""
    if value is None:
        return cls()
    if isinstance(value, cls):
        return value
    if isinstance(value, dict):
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in value.items() if k in known})
    raise TypeError(f"expected {cls.__name__} or dict, got {type(value).__name__}")


class Params:
    """
    All tunable knobs live here so you don't hunt through code.
    """
    def __init__(self):
        # Matrix layout (row-major, rows * columns particles)
        self.rows = 20
        self.columns = 12
        self.gap = 32.0
        self.circle_size = 3.0

        # Random movement bounces off the viewport grown by this much on every side,
        # so bounces happen off screen.
        self.frame_padding = 200.0

        # Speed in points per tick
        self.min_speed = 0.3
        self.max_speed = 0.8

        # Random -> matrix travel time (seconds)
        self.matrix_animation_duration = 0.8

        # Ticks per second while in random mode
        self.tick_rate = 60.0

        # None => different layout every run
        self.seed = None

        self.attraction = AttractionSettings()
        self.matrix_shift = MatrixShiftSettings()
