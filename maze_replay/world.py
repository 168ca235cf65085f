from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Iterable, List, Tuple

from .errors import BlockedMove


class SquareType(IntEnum):
    WALL = 0
    OPEN = 1
    START = 2
    FINISH = 3


class Direction(IntEnum):
    """Cardinal directions; opposites differ by 2."""

    NORTH = 0
    EAST = 1
    SOUTH = 2
    WEST = 3

    @property
    def delta(self) -> Tuple[int, int]:
        return DIRECTION_VECTORS[self]

    def turned(self, quarter_turns: int) -> "Direction":
        return Direction(constrain_direction4(self + quarter_turns))

    def opposite(self) -> "Direction":
        return self.turned(2)


DIRECTION_VECTORS: Dict[Direction, Tuple[int, int]] = {
    Direction.NORTH: (0, -1),
    Direction.EAST: (1, 0),
    Direction.SOUTH: (0, 1),
    Direction.WEST: (-1, 0),
}

START_DIRECTION = Direction.EAST


def constrain_direction4(d: int) -> int:
    return ((d % 4) + 4) % 4


def constrain_direction16(d: float) -> int:
    """Keep a 16-step display direction within 0-15, wrapping at both ends."""
    return ((math.floor(d + 0.5) % 16) + 16) % 16


@dataclass(frozen=True)
class MazeGrid:
    """Immutable rectangular maze with exactly one start and at least one finish."""

    width: int
    height: int
    grid: Tuple[Tuple[SquareType, ...], ...]
    start: Tuple[int, int]
    finishes: Tuple[Tuple[int, int], ...]

    @staticmethod
    def from_rows(rows: Iterable[Iterable[int]]) -> "MazeGrid":
        base: List[List[SquareType]] = []
        for y, row in enumerate(rows):
            try:
                base.append([SquareType(v) for v in row])
            except ValueError as exc:
                raise ValueError(f"Invalid square value in row {y}: {exc}") from exc

        if not base or not base[0]:
            raise ValueError("Maze must have at least one row and one column.")
        width = len(base[0])
        for y, row in enumerate(base):
            if len(row) != width:
                raise ValueError(f"Row {y} has {len(row)} columns, expected {width}.")

        starts = [(x, y) for y, row in enumerate(base) for x, v in enumerate(row) if v == SquareType.START]
        finishes = [(x, y) for y, row in enumerate(base) for x, v in enumerate(row) if v == SquareType.FINISH]
        if len(starts) != 1:
            raise ValueError(f"Maze must have exactly one start square, found {len(starts)}.")
        if not finishes:
            raise ValueError("Maze must have at least one finish square.")

        return MazeGrid(
            width=width,
            height=len(base),
            grid=tuple(tuple(r) for r in base),
            start=starts[0],
            finishes=tuple(finishes),
        )

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell(self, x: int, y: int) -> SquareType:
        if not self.in_bounds(x, y):
            return SquareType.WALL
        return self.grid[y][x]

    def is_walkable(self, x: int, y: int) -> bool:
        return self.cell(x, y) != SquareType.WALL

    def to_rows(self) -> List[List[int]]:
        return [[int(v) for v in row] for row in self.grid]


@dataclass
class AgentPose:
    x: int
    y: int
    direction: Direction = START_DIRECTION

    @property
    def cell(self) -> Tuple[int, int]:
        return self.x, self.y


@dataclass
class FinishMarker:
    x: int
    y: int
    consumed: bool = False


@dataclass
class FinishSet:
    """Finish cells in grid order, each consumed at most once."""

    markers: List[FinishMarker] = field(default_factory=list)

    @classmethod
    def from_grid(cls, grid: MazeGrid) -> "FinishSet":
        return cls(markers=[FinishMarker(x, y) for x, y in grid.finishes])

    def consume_at(self, x: int, y: int) -> int | None:
        """Consume the unconsumed marker at ``(x, y)`` and return its index."""
        for index, marker in enumerate(self.markers):
            if marker.consumed or (marker.x, marker.y) != (x, y):
                continue
            marker.consumed = True
            return index
        return None

    def remaining(self) -> int:
        return sum(1 for m in self.markers if not m.consumed)

    def all_consumed(self) -> bool:
        return self.remaining() == 0

    def reset(self) -> None:
        for marker in self.markers:
            marker.consumed = False


class WorldModel:
    """Authoritative logical state of one run: grid, agent pose and finish set."""

    def __init__(self, grid: MazeGrid) -> None:
        self.grid = grid
        self.pose = AgentPose(*grid.start)
        self.finishes = FinishSet.from_grid(grid)

    def reset(self) -> None:
        self.pose = AgentPose(*self.grid.start)
        self.finishes.reset()

    def neighbor(self, direction: Direction) -> Tuple[int, int]:
        dx, dy = direction.delta
        return self.pose.x + dx, self.pose.y + dy

    def is_path(self, direction: Direction) -> bool:
        return self.grid.is_walkable(*self.neighbor(direction))

    def move(self, direction: Direction) -> None:
        if not self.is_path(direction):
            raise BlockedMove(direction)
        self.pose.x, self.pose.y = self.neighbor(direction)

    def check_finish(self) -> int | None:
        return self.finishes.consume_at(self.pose.x, self.pose.y)

    def remaining_finish_count(self) -> int:
        return self.finishes.remaining()

    def all_finishes_consumed(self) -> bool:
        return self.finishes.all_consumed()

    def not_done(self) -> bool:
        return not self.all_finishes_consumed()
