import numpy as np
import pytest

from layout import MatrixGeometry
from matrix_shift import MatrixShiftField, ShiftSliders
from modes import Mode
from params import MatrixShiftSettings

CENTER = (200.0, 400.0)
HALF = (176.0, 304.0)


def _field(mode=Mode.MATRIX, **overrides):
    f = MatrixShiftField(MatrixShiftSettings(**overrides), ShiftSliders(), mode_source=lambda: mode)
    f.geometry = MatrixGeometry(CENTER, HALF)
    return f


class TestSliders:
    def test_clamped(self):
        s = ShiftSliders(2.0, -3.0)
        assert (s.x, s.y) == (1.0, -1.0)
        s.set(0.25, 5.0)
        assert (s.x, s.y) == (0.25, 1.0)
        s.zero()
        assert (s.x, s.y) == (0.0, 0.0)


class TestGating:
    @pytest.mark.parametrize("mode", [Mode.RANDOM, Mode.ANIMATING_TO_MATRIX])
    def test_inactive_outside_matrix(self, mode):
        f = _field(mode)
        f.sliders.set(1.0, 1.0)
        assert f.offset(CENTER) == (0.0, 0.0)
        assert f.opacity(CENTER) == pytest.approx(0.35)
        assert f.highlight_opacity(CENTER) == 0.0

    def test_zero_sliders_are_neutral(self):
        f = _field()
        assert f.offset(CENTER) == (0.0, 0.0)
        assert f.opacity(CENTER) == pytest.approx(0.35)
        assert f.highlight_opacity(CENTER) == 0.0

    def test_disabled(self):
        f = _field(is_enabled=False)
        f.sliders.set(1.0, 0.0)
        assert f.offset(CENTER) == (0.0, 0.0)


class TestOffsets:
    def test_full_slider_moves_center_by_max(self):
        f = _field()
        f.sliders.set(1.0, 0.0)
        assert f.offset(CENTER) == pytest.approx((80.0, 0.0))
        f.sliders.set(-1.0, -0.5)
        assert f.offset(CENTER) == pytest.approx((-80.0, -40.0))

    def test_decays_away_from_center(self):
        f = _field()
        f.sliders.set(1.0, 0.0)
        xs = np.linspace(CENTER[0], CENTER[0] + HALF[0], 20)
        pts = np.stack([xs, np.full_like(xs, CENTER[1])], axis=1)
        dx = f.offsets(pts)[:, 0]
        assert np.all(np.diff(dx) < 0)
        assert dx.min() > 0

    def test_input_curve_shapes_slider(self):
        f = _field(input_curve_power=2.0)
        f.sliders.set(-0.5, 0.0)
        assert f.offset(CENTER)[0] == pytest.approx(-80.0 * 0.25)

    def test_vertical_decay_is_faster_than_horizontal(self):
        f = _field()
        f.sliders.set(1.0, 0.0)
        right = f.offset((CENTER[0] + HALF[0], CENTER[1]))[0]
        below = f.offset((CENTER[0], CENTER[1] + HALF[1]))[0]
        assert below < right

    def test_degenerate_geometry_is_finite(self):
        f = _field()
        f.geometry = MatrixGeometry(CENTER, (0.0, 0.0))
        f.sliders.set(1.0, 1.0)
        out = f.offsets([[0.0, 0.0], list(CENTER)])
        assert np.all(np.isfinite(out))


class TestOpacityAndHighlight:
    def test_share_one_effect_weight(self):
        f = _field()
        f.sliders.set(0.7, 0.0)
        for p in [CENTER, (260.0, 450.0), (30.0, 100.0)]:
            w = f.effect_weight(p)
            assert 0.0 < w <= 1.0
            assert f.opacity(p) == pytest.approx(0.35 + 0.65 * w)
            assert f.highlight_opacity(p) == pytest.approx(0.85 * w ** 1.5)

    def test_full_weight_at_center(self):
        f = _field()
        f.sliders.set(0.0, -1.0)
        assert f.effect_weight(CENTER) == pytest.approx(1.0)
        assert f.opacity(CENTER) == pytest.approx(1.0)
        assert f.highlight_opacity(CENTER) == pytest.approx(0.85)

    def test_highlight_toggle(self):
        f = _field(highlight_enabled=False)
        f.sliders.set(1.0, 0.0)
        assert f.highlight_opacity(CENTER) == 0.0
        assert f.opacity(CENTER) == pytest.approx(1.0)


class TestBoostPolicy:
    def test_blend_pulls_weight_toward_one_on_center_line(self):
        f = _field(boost_policy="blend")
        f.sliders.set(1.0, 0.0)
        # on the vertical center line, at the bottom edge: nx = 0, ny = 1
        g = np.exp(-2.5)
        assert f.effect_weight((CENTER[0], CENTER[1] + HALF[1])) == pytest.approx(g + (1.0 - g) * 0.7)

    def test_shrink_leaves_center_line_untouched(self):
        f = _field(boost_policy="shrink")
        f.sliders.set(1.0, 0.0)
        assert f.effect_weight((CENTER[0], CENTER[1] + HALF[1])) == pytest.approx(np.exp(-2.5))

    def test_no_boost_at_horizontal_edge(self):
        shrink = _field(boost_policy="shrink")
        blend = _field(boost_policy="blend")
        for f in (shrink, blend):
            f.sliders.set(1.0, 0.0)
        edge = (CENTER[0] + HALF[0], CENTER[1])
        assert shrink.effect_weight(edge) == pytest.approx(blend.effect_weight(edge))

    def test_unknown_policy_falls_back_to_shrink(self, caplog):
        odd = _field(boost_policy="Shrink")
        shrink = _field(boost_policy="shrink")
        for f in (odd, shrink):
            f.sliders.set(0.5, 0.0)
        sample_points = [CENTER, (CENTER[0], CENTER[1] + HALF[1]), (260.0, 450.0)]

        with caplog.at_level("WARNING", logger="dynamic_matrix"):
            for p in sample_points:
                assert odd.offset(p) == pytest.approx(shrink.offset(p))
                assert odd.opacity(p) == pytest.approx(shrink.opacity(p))
                assert odd.highlight_opacity(p) == pytest.approx(shrink.highlight_opacity(p))

        assert odd.policy() == "shrink"
        warnings = [r for r in caplog.records if "boost_policy" in r.getMessage()]
        assert len(warnings) == 1

    def test_unknown_policy_keeps_engine_frames_alive(self, engine, scheduler):
        engine.animate_to_matrix()
        scheduler.advance(1.0)
        engine.set_shift_sliders(0.5, 0.0)
        engine.matrix_shift_settings.boost_policy = "Shrink"
        frame = engine.frame()
        assert np.all(np.isfinite(frame.positions))
        assert frame.highlights.max() > 0
