"""Constants and typed configuration for maze execution and replay."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Tuple

MAX_TICKS = 10_000
"""Step budget for one run; 10k steps bound a pathological script to a few minutes of replay."""

STEP_SPEED_MS = 150
"""Milliseconds between animation frames during replay."""

OPENING_STEP_SPEED_MS = 100
"""Frame cadence of the opening spin played by ``reset(first=True)``."""

FIRST_FRAME_DELAY_MS = 100
"""Delay between the end of execution and the first replayed record."""

RECORD_FRAMES = 5
"""Each record occupies this many frames of ``step_speed`` before the next one is armed."""

INTERPOLATION_FRAMES = 4
"""Sub-frames used to animate one move or turn."""

CRASH_FRAMES = 100
"""Frames of the spin/fall crash animation (enough to leave the screen)."""

LOOK_WAVES = 3
"""Number of waves drawn by the look (sensor) icon."""

SOUND_VOLUME = 0.5

SQUARE_SIZE = 40
PEGMAN_WIDTH = 42
PEGMAN_HEIGHT = 43


class CrashType(IntEnum):
    STOP = 1
    SPIN = 2
    FALL = 3


@dataclass(frozen=True)
class Skin:
    """Assets and crash behaviour of one agent avatar."""

    sprite: str
    marker: str
    crash_type: CrashType = CrashType.STOP


SKINS: Tuple[Skin, ...] = (
    Skin(sprite="maze/xiaoc.png", marker="maze/apple34.png", crash_type=CrashType.STOP),
)


@dataclass(frozen=True)
class ExecutionConfig:
    max_ticks: int = MAX_TICKS

    def __post_init__(self) -> None:
        if self.max_ticks < 1:
            raise ValueError("max_ticks must be >= 1")


@dataclass(frozen=True)
class ReplayConfig:
    step_speed: int = STEP_SPEED_MS
    crash_seed: int | None = None
    """Seed for the random drift of spin/fall crashes; ``None`` draws from the OS."""

    def __post_init__(self) -> None:
        if self.step_speed < 0:
            raise ValueError("step_speed must be >= 0")


@dataclass(frozen=True)
class SessionConfig:
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    replay: ReplayConfig = field(default_factory=ReplayConfig)
    skin: Skin = SKINS[0]


def skin_by_id(skin_id: int) -> Skin:
    if not 0 <= skin_id < len(SKINS):
        raise ValueError(f"Unknown skin id: {skin_id}")
    return SKINS[skin_id]
