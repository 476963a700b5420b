"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

import pytest

# Add the project root to the path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from engine import MatrixEngine  # noqa: E402
from layout import Rect  # noqa: E402
from scheduler import ManualClock, Scheduler  # noqa: E402


@pytest.fixture
def clock():
    return ManualClock(0.0)


@pytest.fixture
def scheduler(clock):
    return Scheduler(clock=clock)


@pytest.fixture
def viewport():
    """The reference viewport: 400 x 800 at the origin."""
    return Rect.of_size(400, 800)


@pytest.fixture
def sample_params():
    """Provide a deterministic configuration for tests."""
    return {
        "rows": 20,
        "columns": 12,
        "gap": 32.0,
        "frame_padding": 200.0,
        "min_speed": 0.3,
        "max_speed": 0.8,
        "matrix_animation_duration": 0.8,
        "tick_rate": 60.0,
        "seed": 1234,
    }


@pytest.fixture
def engine(sample_params, scheduler, viewport):
    """An engine laid out on the reference viewport, driven by a manual clock."""
    eng = MatrixEngine(params=sample_params, scheduler=scheduler)
    eng.set_viewport(viewport)
    return eng
