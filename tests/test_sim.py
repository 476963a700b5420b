import numpy as np
import pytest

from layout import Rect
from modes import Mode
from particles import ParticleStore
from sim import RandomMotionSimulator


def _sim(positions, velocities, mode=Mode.RANDOM):
    store = ParticleStore()
    pos = np.asarray(positions, dtype=float)
    n = len(pos)
    store.reset(pos, np.asarray(velocities, dtype=float), np.zeros((n, 2)), np.ones(n))
    sim = RandomMotionSimulator(store, {"seed": 7}, mode_source=lambda: mode)
    sim.frame_bounds = Rect(-200.0, -200.0, 800.0, 1200.0)
    return store, sim


def test_integrates_one_tick():
    store, sim = _sim([[10.0, 20.0]], [[0.5, -0.25]])
    assert sim.tick() is True
    assert store.particle(0).position == pytest.approx((10.5, 19.75))


def test_bounces_at_max_x():
    store, sim = _sim([[599.8, 0.0]], [[0.5, 0.0]])
    sim.tick()
    p = store.particle(0)
    assert p.position[0] == 600.0
    assert p.velocity[0] == -0.5


def test_bounces_at_min_y():
    store, sim = _sim([[0.0, -199.9]], [[0.0, -0.3]])
    sim.tick()
    p = store.particle(0)
    assert p.position[1] == -200.0
    assert p.velocity[1] == pytest.approx(0.3)


def test_stays_inside_frame_over_many_ticks():
    rng = np.random.default_rng(0)
    pos = rng.uniform(-200, 600, size=(50, 2))
    pos[:, 1] = rng.uniform(-200, 1000, size=50)
    store, sim = _sim(pos, rng.uniform(-0.8, 0.8, size=(50, 2)))
    for _ in range(2000):
        sim.tick()
    p = store.positions
    assert p[:, 0].min() >= -200.0 and p[:, 0].max() <= 600.0
    assert p[:, 1].min() >= -200.0 and p[:, 1].max() <= 1000.0


@pytest.mark.parametrize("mode", [Mode.ANIMATING_TO_MATRIX, Mode.MATRIX])
def test_no_motion_outside_random_mode(mode):
    store, sim = _sim([[10.0, 20.0]], [[0.5, 0.5]], mode=mode)
    version = store.version
    assert sim.tick() is False
    assert store.version == version
    assert store.particle(0).position == (10.0, 20.0)


def test_empty_store_is_noop():
    sim = RandomMotionSimulator(ParticleStore())
    assert sim.tick() is False


def test_random_velocities_respect_speed_range():
    store, sim = _sim([[0.0, 0.0]], [[0.0, 0.0]])
    vel, speeds = sim.random_velocities(500)
    assert vel.shape == (500, 2)
    assert speeds.min() >= 0.3 and speeds.max() <= 0.8
    np.testing.assert_allclose(np.hypot(vel[:, 0], vel[:, 1]), speeds)


def test_random_positions_inside_frame():
    store, sim = _sim([[0.0, 0.0]], [[0.0, 0.0]])
    pos = sim.random_positions(300)
    assert pos[:, 0].min() >= -200.0 and pos[:, 0].max() <= 600.0
    assert pos[:, 1].min() >= -200.0 and pos[:, 1].max() <= 1000.0
