import numpy as np
import pytest

from attraction import AttractionField
from params import AttractionSettings


@pytest.fixture
def field():
    f = AttractionField(AttractionSettings())
    f.set_pointer((0.0, 0.0))
    return f


class TestOffsets:
    def test_no_pointer_no_offset(self):
        f = AttractionField()
        np.testing.assert_array_equal(f.offsets([[10.0, 10.0], [50.0, 0.0]]), np.zeros((2, 2)))

    def test_points_toward_pointer(self, field):
        dx, dy = field.offset((100.0, 0.0))
        assert dx < 0 and dy == 0.0
        dx, dy = field.offset((0.0, -50.0))
        assert dx == 0.0 and dy > 0

    @pytest.mark.parametrize("falloff_power, strength_curve_power, radius", [
        (1.0, 1.0, 220.0),
        (3.0, 0.5, 220.0),
        (0.25, 4.0, 80.0),
        (0.0, 0.0, 220.0),
        (-2.0, -1.0, 150.0),
        (1.0, 1.0, 0.0),
        (1.0, 1.0, -50.0),
    ])
    @pytest.mark.parametrize("pointer", [(0.0, 0.0), (37.5, -12.0)])
    def test_magnitude_never_increases_with_distance(self, falloff_power, strength_curve_power, radius, pointer):
        f = AttractionField(AttractionSettings(
            falloff_power=falloff_power,
            strength_curve_power=strength_curve_power,
            radius=radius,
        ))
        f.set_pointer(pointer)
        # rays out of the pointer in a few directions
        for angle in (0.0, 0.7, 2.5, 4.0):
            d = np.linspace(0.0, 300.0, 301)
            pts = np.stack([pointer[0] + d * np.cos(angle), pointer[1] + d * np.sin(angle)], axis=1)
            mags = np.hypot(*f.offsets(pts).T)
            assert np.all(np.isfinite(mags))
            assert np.all(np.diff(mags[1:]) <= 1e-9)
            assert mags.max() <= 14.0 + 1e-9
            assert np.all(mags[d > max(radius, 0.0) + 1e-6] == 0.0)

    def test_zero_at_and_beyond_radius(self, field):
        assert field.offset((220.0, 0.0)) == (0.0, 0.0)
        assert field.offset((0.0, 500.0)) == (0.0, 0.0)

    def test_coincident_point_has_no_direction(self, field):
        assert field.offset((0.0, 0.0)) == (0.0, 0.0)

    def test_near_pointer_close_to_max(self, field):
        dx, _ = field.offset((1.0, 0.0))
        assert abs(dx) == pytest.approx(14.0, rel=1e-3)

    def test_disabled(self, field):
        field.settings.is_enabled = False
        assert field.offset((10.0, 0.0)) == (0.0, 0.0)
        assert field.opacity((10.0, 0.0)) == 0.35

    def test_explicit_pointer_overrides(self):
        f = AttractionField()
        dx, _ = f.offset((100.0, 0.0), pointer=(0.0, 0.0))
        assert dx < 0


class TestOpacity:
    def test_base_outside_opacity_radius(self, field):
        assert field.opacity((160.0, 0.0)) == pytest.approx(0.35)
        assert field.opacity((200.0, 0.0)) == pytest.approx(0.35)

    def test_uses_its_own_radius(self, field):
        # inside the movement radius, outside the opacity radius
        assert field.offset((190.0, 0.0))[0] < 0
        assert field.opacity((190.0, 0.0)) == pytest.approx(0.35)

    def test_max_at_pointer(self, field):
        assert field.opacity((0.0, 0.0)) == pytest.approx(1.0)

    def test_decreases_with_distance(self, field):
        xs = np.linspace(0.0, 200.0, 50)
        ops = field.opacities(np.stack([xs, np.zeros_like(xs)], axis=1))
        assert np.all(np.diff(ops) <= 1e-12)
        assert ops.min() >= 0.35 and ops.max() <= 1.0

    def test_base_without_pointer(self):
        assert AttractionField().opacity((5.0, 5.0)) == pytest.approx(0.35)
