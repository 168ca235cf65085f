from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .commands import CommandLog
from .config import SessionConfig
from .directives import DirectiveSink, discard
from .session import MazeSession
from .storage import log_digest
from .world import MazeGrid


@dataclass
class RunSummary:
    result: str
    reason: str | None
    ticks_executed: int
    records: int
    finishes_remaining: int
    victorious: bool
    digest: str
    error: str | None = None


class MazeLibrary:
    """Factory + orchestration API for executing and replaying maze programs headlessly."""

    def create_maze(self, rows: Iterable[Iterable[int]]) -> MazeGrid:
        return MazeGrid.from_rows(rows)

    def run_program(
        self,
        grid: MazeGrid,
        source: str,
        config: SessionConfig | None = None,
        sink: DirectiveSink = discard,
    ) -> tuple[MazeSession, RunSummary]:
        session = MazeSession(grid, config=config, sink=sink)
        session.run(source)
        session.play_to_end()
        return session, self.summarize(session)

    def replay_log(
        self,
        grid: MazeGrid,
        log: CommandLog,
        config: SessionConfig | None = None,
        sink: DirectiveSink = discard,
    ) -> tuple[MazeSession, RunSummary]:
        session = MazeSession(grid, config=config, sink=sink)
        session.replay_log(log)
        session.play_to_end()
        return session, self.summarize(session)

    @staticmethod
    def summarize(session: MazeSession) -> RunSummary:
        outcome = session.outcome
        log = session.log if session.log is not None else CommandLog()
        return RunSummary(
            result=outcome.result.name if outcome else "REPLAY",
            reason=outcome.reason.value if outcome else None,
            ticks_executed=outcome.ticks if outcome else 0,
            records=len(log),
            finishes_remaining=session.replay.remaining_finish_count(),
            victorious=session.victorious,
            digest=log_digest(log),
            error=outcome.error if outcome else None,
        )
