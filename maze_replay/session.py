from __future__ import annotations

import logging
from typing import Callable

from .commands import CommandLog
from .config import SessionConfig
from .directives import DirectiveSink, discard
from .execution import ExecutionDriver, ExecutionOutcome
from .replay import ReplayScheduler
from .timers import TimerQueue
from .world import MazeGrid, WorldModel

logger = logging.getLogger(__name__)


class MazeSession:
    """Owns everything one maze page needs: world, log, timers and playback.

    ``run`` executes a program to a classified outcome, then starts replaying
    its log; callers drive playback through ``advance`` or ``play_to_end``.
    """

    def __init__(
        self,
        grid: MazeGrid,
        config: SessionConfig | None = None,
        sink: DirectiveSink = discard,
        on_success: Callable[[], None] | None = None,
    ) -> None:
        self.grid = grid
        self.config = config or SessionConfig()
        self.world = WorldModel(grid)
        self.timers = TimerQueue()
        self.replay = ReplayScheduler(
            grid,
            self.timers,
            sink=sink,
            config=self.config.replay,
            skin=self.config.skin,
            on_success=on_success,
        )
        self.log: CommandLog | None = None
        self.outcome: ExecutionOutcome | None = None

    def reset(self, first: bool = False) -> None:
        self.replay.reset(first)
        self.world.reset()

    def run(self, source: str) -> ExecutionOutcome:
        # Playback is reset once, after execution.
        self.world.reset()
        driver = ExecutionDriver(self.world, self.config.execution)
        self.outcome, self.log = driver.run(source)
        self.replay.reset()
        self.replay.start(self.log)
        return self.outcome

    def replay_log(self, log: CommandLog) -> None:
        """Play back a previously recorded log without executing anything."""
        self.reset()
        self.log = log
        self.outcome = None
        self.replay.start(log)

    def advance(self, delta_ms: float) -> int:
        return self.timers.advance(delta_ms)

    def play_to_end(self) -> int:
        fired = self.timers.run_until_idle()
        logger.debug("Replay drained after %d callbacks at t=%.0fms", fired, self.timers.now)
        return fired

    @property
    def victorious(self) -> bool:
        return self.replay.victorious
