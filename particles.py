"""
Particle storage.

State (row-major, index = row * columns + col):
- positions:  Nx2
- velocities: Nx2 (points per tick)
- targets:    Nx2 matrix slots, fixed until the next layout
- speeds:     N
- ids:        N opaque strings, stable for a particle's lifetime

The store is the only writer. Every commit emits one StoreChange to the
subscribers and swaps in a fresh read-only snapshot for render passes that
run outside the update loop.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional
import uuid

import numpy as np

from logger import get_logger

log = get_logger("particles")


@dataclass(frozen=True)
class Particle:
    id: str
    position: tuple[float, float]
    velocity: tuple[float, float]
    target_position: tuple[float, float]
    speed: float


@dataclass(frozen=True)
class StoreChange:
    reason: str              # "layout" | "tick" | "to_matrix" | "velocities" | "move"
    animated: bool = False   # False => presentation must not tween this update
    duration: float = 0.0


@dataclass(frozen=True)
class StoreSnapshot:
    ids: tuple
    positions: np.ndarray
    velocities: np.ndarray
    targets: np.ndarray
    speeds: np.ndarray
    version: int

    def __len__(self) -> int:
        return len(self.ids)


def _frozen(a):
    c = np.array(a, dtype=np.float64, copy=True)
    c.setflags(write=False)
    return c


def _as_points(a, n, name):
    arr = np.asarray(a, dtype=np.float64)
    if arr.shape != (n, 2):
        raise ValueError(f"{name} must have shape ({n}, 2), got {arr.shape}")
    return arr


class ParticleStore:
    def __init__(self):
        self._ids: list[str] = []
        self._index: dict[str, int] = {}
        self._pos = np.zeros((0, 2), dtype=np.float64)
        self._vel = np.zeros((0, 2), dtype=np.float64)
        self._tgt = np.zeros((0, 2), dtype=np.float64)
        self._spd = np.zeros((0,), dtype=np.float64)
        self._listeners: list[Callable[[StoreChange], None]] = []
        self._version = 0
        self._snapshot = self._build_snapshot()

    # ========================= Read =========================

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[Particle]:
        for i in range(len(self._ids)):
            yield self.particle(i)

    @property
    def ids(self) -> tuple:
        return tuple(self._ids)

    @property
    def positions(self) -> np.ndarray:
        return self._view(self._pos)

    @property
    def velocities(self) -> np.ndarray:
        return self._view(self._vel)

    @property
    def targets(self) -> np.ndarray:
        return self._view(self._tgt)

    @property
    def speeds(self) -> np.ndarray:
        return self._view(self._spd)

    @property
    def version(self) -> int:
        return self._version

    def particle(self, index: int) -> Particle:
        if index < 0 or index >= len(self._ids):
            raise IndexError(f"particle index {index} out of range (0..{len(self._ids) - 1})")
        return Particle(
            id=self._ids[index],
            position=(float(self._pos[index, 0]), float(self._pos[index, 1])),
            velocity=(float(self._vel[index, 0]), float(self._vel[index, 1])),
            target_position=(float(self._tgt[index, 0]), float(self._tgt[index, 1])),
            speed=float(self._spd[index]),
        )

    def index_of(self, pid: str) -> Optional[int]:
        return self._index.get(pid)

    def snapshot(self) -> StoreSnapshot:
        return self._snapshot

    @staticmethod
    def _view(a):
        v = a.view()
        v.setflags(write=False)
        return v

    # ========================= Subscribers =========================

    def subscribe(self, callback: Callable[[StoreChange], None]) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def unsubscribe(self, callback: Callable[[StoreChange], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    # ========================= Write =========================

    def reset(self, positions, velocities, targets, speeds) -> None:
        """Drop every particle and create a fresh set (new ids)."""
        tgt = np.asarray(targets, dtype=np.float64).reshape(-1, 2)
        n = len(tgt)
        self._pos = _as_points(positions, n, "positions").copy()
        self._vel = _as_points(velocities, n, "velocities").copy()
        self._tgt = tgt.copy()
        spd = np.asarray(speeds, dtype=np.float64).reshape(-1)
        if spd.shape != (n,):
            raise ValueError(f"speeds must have shape ({n},), got {spd.shape}")
        self._spd = spd.copy()

        self._ids = [uuid.uuid4().hex for _ in range(n)]
        self._index = {pid: i for i, pid in enumerate(self._ids)}
        log.debug("store reset with %d particles", n)
        self._commit(StoreChange("layout"))

    def update(self, positions=None, velocities=None, speeds=None, *,
               reason: str, animated: bool = False, duration: float = 0.0) -> None:
        """Batch in-place update. One notification no matter how many particles moved."""
        n = len(self._ids)
        if positions is not None:
            self._pos[:] = _as_points(positions, n, "positions")
        if velocities is not None:
            self._vel[:] = _as_points(velocities, n, "velocities")
        if speeds is not None:
            spd = np.asarray(speeds, dtype=np.float64).reshape(-1)
            if spd.shape != (n,):
                raise ValueError(f"speeds must have shape ({n},), got {spd.shape}")
            self._spd[:] = spd
        self._commit(StoreChange(reason, bool(animated), float(duration)))

    def move_particle(self, pid: str, position, animated: bool = True) -> bool:
        return self.move_particles([(pid, position)], animated=animated) > 0

    def move_particles(self, updates: Iterable, animated: bool = True) -> int:
        """Move particles by id. Unknown ids are skipped. Returns how many moved."""
        moved = 0
        for pid, position in updates:
            i = self._index.get(pid)
            if i is None:
                continue
            self._pos[i, 0] = float(position[0])
            self._pos[i, 1] = float(position[1])
            moved += 1
        if moved:
            self._commit(StoreChange("move", bool(animated)))
        return moved

    # ========================= Internals =========================

    def _build_snapshot(self):
        return StoreSnapshot(
            ids=tuple(self._ids),
            positions=_frozen(self._pos),
            velocities=_frozen(self._vel),
            targets=_frozen(self._tgt),
            speeds=_frozen(self._spd),
            version=self._version,
        )

    def _commit(self, change):
        self._version += 1
        # single assignment: readers see either the old or the new snapshot
        self._snapshot = self._build_snapshot()
        for cb in list(self._listeners):
            cb(change)
