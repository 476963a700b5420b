"""
Mode state machine.

    RANDOM --animate_to_matrix()--> ANIMATING_TO_MATRIX --(duration)--> MATRIX
    any    --reset_to_random_movement()--> RANDOM
    any    --relayout()--> RANDOM

The controller owns the two scheduled sources: the random-mode ticker and the
one-shot completion of the matrix move. Both are cancelled before any
transition, and the completion re-checks state before it applies.
"""

from __future__ import annotations
from enum import Enum
from typing import Callable

import numpy as np

from logger import get_logger
from params import pget

log = get_logger("modes")


class Mode(Enum):
    RANDOM = "random"
    ANIMATING_TO_MATRIX = "animating_to_matrix"
    MATRIX = "matrix"


ModeListener = Callable[[Mode, Mode], None]


class ModeController:
    def __init__(self, store, simulator, scheduler, sliders=None, params=None):
        self.store = store
        self.simulator = simulator
        self.scheduler = scheduler
        self.sliders = sliders

        self.duration = max(0.0, float(pget(params, "matrix_animation_duration", 0.8)))
        rate = float(pget(params, "tick_rate", 60.0))
        self.tick_interval = 1.0 / max(1e-3, rate)

        self._mode = Mode.RANDOM
        self._ticker = None
        self._completion = None
        self._listeners: list[ModeListener] = []

        simulator.mode_source = lambda: self._mode

    # ========================= State =========================

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def is_animating_to_matrix(self) -> bool:
        return self._mode is Mode.ANIMATING_TO_MATRIX

    @property
    def ticker_active(self) -> bool:
        return self._ticker is not None and self._ticker.active

    @property
    def completion_pending(self) -> bool:
        return self._completion is not None and self._completion.active

    def subscribe(self, callback: ModeListener) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def unsubscribe(self, callback: ModeListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    # ========================= Commands =========================

    def animate_to_matrix(self) -> bool:
        if self._mode is not Mode.RANDOM:
            return False

        self._cancel_completion()
        self._set_mode(Mode.ANIMATING_TO_MATRIX)
        self._stop_ticker()
        self._zero_sliders()

        n = len(self.store)
        if n:
            # presentation eases this move over `duration`
            self.store.update(
                positions=self.store.targets,
                velocities=np.zeros((n, 2)),
                reason="to_matrix",
                animated=True,
                duration=self.duration,
            )

        task = None

        def complete():
            # stale if a reset/relayout replaced or cancelled us in between
            if self._completion is not task:
                return
            self._completion = None
            if self._mode is Mode.ANIMATING_TO_MATRIX:
                self._set_mode(Mode.MATRIX)

        task = self.scheduler.call_later(self.duration, complete, name="matrix_completion")
        self._completion = task
        return True

    def reset_to_random_movement(self) -> None:
        # allowed from any state, including mid-animation
        self._cancel_completion()
        self._stop_ticker()
        self._set_mode(Mode.RANDOM)
        self._zero_sliders()

        n = len(self.store)
        if n:
            vel, speeds = self.simulator.random_velocities(n)
            self.store.update(velocities=vel, speeds=speeds, reason="velocities")

        self._start_ticker()

    def relayout(self) -> None:
        """Called after the particles were recreated for a new viewport."""
        self._cancel_completion()
        self._stop_ticker()
        self._set_mode(Mode.RANDOM)
        self._zero_sliders()
        self._start_ticker()

    def shutdown(self) -> None:
        self._cancel_completion()
        self._stop_ticker()

    # ========================= Internals =========================

    def _set_mode(self, new):
        old = self._mode
        if old is new:
            return
        self._mode = new
        log.debug("mode %s -> %s", old.value, new.value)
        for cb in list(self._listeners):
            cb(old, new)

    def _zero_sliders(self):
        if self.sliders is not None:
            self.sliders.zero()

    def _start_ticker(self):
        if self._mode is not Mode.RANDOM:
            return
        # at most one ticker alive
        self._stop_ticker()
        self._ticker = self.scheduler.call_every(self.tick_interval, self.simulator.tick, name="random_ticker")

    def _stop_ticker(self):
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    def _cancel_completion(self):
        if self._completion is not None:
            self._completion.cancel()
            self._completion = None
