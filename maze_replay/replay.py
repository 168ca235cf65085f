"""Timer-driven playback of a command log.

Playback never looks at the execution-time world: it keeps its own display
pose and finish set, rebuilt from the grid on every reset, and walks the log
one record per ``animate`` callback. Each callback arms the next one on the
shared ``TimerQueue``; resetting cancels them all before any state changes.
"""

from __future__ import annotations

import logging
import random
from typing import Callable, Sequence

from .commands import CommandKind, CommandLog, CommandRecord
from .config import (
    CRASH_FRAMES,
    FIRST_FRAME_DELAY_MS,
    INTERPOLATION_FRAMES,
    LOOK_WAVES,
    OPENING_STEP_SPEED_MS,
    RECORD_FRAMES,
    SKINS,
    SOUND_VOLUME,
    CrashType,
    ReplayConfig,
    Skin,
)
from .directives import (
    DirectiveSink,
    HighlightDirective,
    LookDirective,
    LookWaveDirective,
    MarkerDirective,
    PoseDirective,
    SoundDirective,
    discard,
)
from .timers import TimerQueue
from .world import START_DIRECTION, AgentPose, Direction, FinishSet, MazeGrid, constrain_direction16

logger = logging.getLogger(__name__)

Position = Sequence[float]

# Offset of the look icon within the agent's cell, per direction.
_LOOK_OFFSETS = {
    Direction.NORTH: (0.5, 0.0),
    Direction.EAST: (1.0, 0.5),
    Direction.SOUTH: (0.5, 1.0),
    Direction.WEST: (0.0, 0.5),
}


class ReplayScheduler:
    def __init__(
        self,
        grid: MazeGrid,
        timers: TimerQueue,
        sink: DirectiveSink = discard,
        config: ReplayConfig | None = None,
        skin: Skin = SKINS[0],
        on_success: Callable[[], None] | None = None,
    ) -> None:
        self.grid = grid
        self.timers = timers
        self.sink = sink
        self.config = config or ReplayConfig()
        self.skin = skin
        self.on_success = on_success
        self.step_speed = self.config.step_speed
        self.pose = AgentPose(*grid.start)
        self.finishes = FinishSet.from_grid(grid)
        self.victorious = False
        self._rng = random.Random(self.config.crash_seed)
        self._log: CommandLog | None = None
        self._cursor = 0
        self._finish_queued = False

    # -- lifecycle ---------------------------------------------------------

    def reset(self, first: bool = False) -> None:
        """Cancel pending playback and put the display back at the start."""
        dropped = self.timers.cancel_all()
        if dropped:
            logger.debug("Cancelled %d pending replay callbacks", dropped)
        self._log = None
        self._cursor = 0
        self._finish_queued = False
        self.victorious = False

        self.pose = AgentPose(*self.grid.start)
        self.finishes.reset()
        for index in range(len(self.finishes.markers)):
            self.sink(MarkerDirective(index, visible=True))
        self.sink(LookDirective(0.0, 0.0, 0.0, visible=False))

        if first:
            # Opening animation: start a quarter turn off and turn into place.
            self.pose.direction = START_DIRECTION.turned(1)
            self._schedule_finish(sound=False)
            self._arm(self.step_speed * RECORD_FRAMES, self._opening_turn)
        else:
            self._display(self.pose.x, self.pose.y, self.pose.direction * 4)

    def start(self, log: CommandLog) -> None:
        self._log = log
        self._cursor = 0
        self._arm(FIRST_FRAME_DELAY_MS, self.animate)

    @property
    def pending(self) -> int:
        return self.timers.pending

    @property
    def done(self) -> bool:
        return self._log is None or self._cursor >= len(self._log)

    def remaining_finish_count(self) -> int:
        return self.finishes.remaining()

    def all_finishes_consumed(self) -> bool:
        return self.finishes.all_consumed()

    # -- per-record state machine -----------------------------------------

    def animate(self) -> None:
        """Play the next record and arm the one after it."""
        log = self._log
        if log is None or self._cursor >= len(log):
            self.sink(HighlightDirective(None))
            return
        record = log[self._cursor]
        self._cursor += 1
        self.sink(HighlightDirective(record.block_id))
        logger.debug("Replaying record %d: %s", self._cursor - 1, record.action)

        self._check_finish_marker()
        self._dispatch(record)

        if self.finishes.all_consumed() and not self._finish_queued and not log.finish_appended:
            log.append_finish()
            self._finish_queued = True

        self._arm(self.step_speed * RECORD_FRAMES, self.animate)

    def _dispatch(self, record: CommandRecord) -> None:
        kind = record.kind
        if kind is CommandKind.MOVE_TO:
            dx, dy = record.direction.delta
            d4 = self.pose.direction * 4
            self._schedule(
                (self.pose.x, self.pose.y, d4),
                (self.pose.x + dx, self.pose.y + dy, d4),
            )
            self.pose.x += dx
            self.pose.y += dy
        elif kind is CommandKind.LOOK_AT:
            self._schedule_look(record.direction)
        elif kind is CommandKind.FAIL_FORWARD:
            self._schedule_fail(forward=True)
        elif kind is CommandKind.FAIL_BACKWARD:
            self._schedule_fail(forward=False)
        elif kind is CommandKind.CHECK:
            pass
        elif kind is CommandKind.FINISH:
            self._schedule_finish(sound=True)
            if not self.victorious:
                self.victorious = True
                logger.info("Maze solved during replay")
                if self.on_success is not None:
                    self.on_success()

    def _check_finish_marker(self) -> None:
        index = self.finishes.consume_at(self.pose.x, self.pose.y)
        if index is not None:
            logger.debug("Finish marker %d consumed at %s", index, self.pose.cell)
            self.sink(MarkerDirective(index, visible=False))

    # -- animations --------------------------------------------------------

    def _arm(self, delay_ms: float, callback: Callable[[], None]) -> None:
        self.timers.schedule(delay_ms, callback)

    def _display(self, x: float, y: float, d: float, angle: float | None = None) -> None:
        self.sink(PoseDirective(x, y, constrain_direction16(d), angle))

    def _schedule(self, start: Position, end: Position, speed: float | None = None) -> None:
        """Interpolate a move or turn over ``INTERPOLATION_FRAMES`` frames."""
        speed = self.step_speed if speed is None else speed
        deltas = [(e - s) / INTERPOLATION_FRAMES for s, e in zip(start, end)]

        def frame(n: int) -> Callable[[], None]:
            if n == INTERPOLATION_FRAMES:
                return lambda: self._display(*end)
            return lambda: self._display(*(s + d * n for s, d in zip(start, deltas)))

        frame(1)()
        for n in range(2, INTERPOLATION_FRAMES + 1):
            self._arm(speed * (n - 1), frame(n))

    def _opening_turn(self) -> None:
        d4 = self.pose.direction * 4
        self._schedule(
            (self.pose.x, self.pose.y, d4),
            (self.pose.x, self.pose.y, d4 - 4),
            speed=OPENING_STEP_SPEED_MS,
        )
        self.pose.direction = self.pose.direction.turned(-1)

    def _schedule_fail(self, forward: bool) -> None:
        dx, dy = self.pose.direction.delta
        if not forward:
            dx, dy = -dx, -dy
        x, y = self.pose.x, self.pose.y
        speed = self.step_speed

        if self.skin.crash_type == CrashType.STOP:
            # Bounce off the wall twice.
            dx /= 4
            dy /= 4
            d16 = constrain_direction16(self.pose.direction * 4)
            self._display(x + dx, y + dy, d16)
            self._play("fail")
            self._arm(speed, lambda: self._display(x, y, d16))

            def bounce() -> None:
                self._display(x + dx, y + dy, d16)
                self._play("fail")

            self._arm(speed * 2, bounce)
            self._arm(speed * 3, lambda: self._display(x, y, d16))
            return

        rng = self._rng
        delta_z = (rng.random() - 0.5) * 10
        delta_d = (rng.random() - 0.5) / 2
        dx = (dx + (rng.random() - 0.5) / 4) / 8
        dy = (dy + (rng.random() - 0.5) / 4) / 8
        acceleration = 0.01 if self.skin.crash_type == CrashType.FALL else 0.0
        drift = {"dy": dy}
        base_d = self.pose.direction * 4

        self._arm(speed * 2, lambda: self._play("fail"))

        def set_position(n: int) -> Callable[[], None]:
            def frame() -> None:
                self._display(x + dx * n, y + drift["dy"] * n, base_d + delta_d * n, delta_z * n)
                drift["dy"] += acceleration

            return frame

        for n in range(1, CRASH_FRAMES):
            self._arm(speed * n / 2, set_position(n))

    def _schedule_look(self, direction: Direction) -> None:
        ox, oy = _LOOK_OFFSETS[direction]
        self.sink(LookDirective(self.pose.x + ox, self.pose.y + oy, direction * 90 - 45, visible=True))
        speed = self.step_speed
        for index in range(LOOK_WAVES):

            def show(i: int = index) -> None:
                self.sink(LookWaveDirective(i, visible=True))
                self._arm(speed * 2, lambda: self.sink(LookWaveDirective(i, visible=False)))

            self._arm(speed * index, show)

    def _schedule_finish(self, sound: bool) -> None:
        if sound:
            self._play("win")

    def _play(self, name: str) -> None:
        self.sink(SoundDirective(name, SOUND_VOLUME))
