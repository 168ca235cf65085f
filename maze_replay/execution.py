from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, IntEnum

from .commands import CommandLog, CommandRecord
from .config import ExecutionConfig
from .errors import BlockedMove, ScriptCompileError
from .script import SandboxedProgram, ScriptHost
from .world import WorldModel

logger = logging.getLogger(__name__)


class ResultType(IntEnum):
    UNSET = 0
    SUCCESS = 1
    FAILURE = -1
    TIMEOUT = 2
    ERROR = -2


class TerminationReason(Enum):
    COMPLETED = "completed"
    BLOCKED = "blocked"
    TIMEOUT = "timeout"
    OTHER = "other"


_RESULT_BY_REASON = {
    TerminationReason.COMPLETED: ResultType.UNSET,
    TerminationReason.BLOCKED: ResultType.ERROR,
    TerminationReason.TIMEOUT: ResultType.TIMEOUT,
    TerminationReason.OTHER: ResultType.ERROR,
}


@dataclass(frozen=True)
class ExecutionOutcome:
    """Classification of one run.

    A program that runs to completion stays ``UNSET``: whether the maze was
    solved is only decided while the log is replayed.
    """

    reason: TerminationReason
    ticks: int = 0
    error: str | None = None
    result: ResultType = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "result", _RESULT_BY_REASON[self.reason])

    @property
    def blocked(self) -> bool:
        return self.reason is TerminationReason.BLOCKED


class ExecutionDriver:
    """Runs one program against a world under a tick budget and builds its log."""

    def __init__(self, world: WorldModel, config: ExecutionConfig | None = None) -> None:
        self.world = world
        self.config = config or ExecutionConfig()

    def run(self, source: str) -> tuple[ExecutionOutcome, CommandLog]:
        log = CommandLog()
        host = ScriptHost(self.world, log)
        outcome = self._execute(source, host)
        log.append(CommandRecord.check())
        log.seal()
        logger.info(
            "Run finished: %s (%s) after %d ticks, %d records",
            outcome.result.name,
            outcome.reason.value,
            outcome.ticks,
            len(log),
        )
        return outcome, log

    def _execute(self, source: str, host: ScriptHost) -> ExecutionOutcome:
        ticks = 0
        try:
            program = SandboxedProgram(source, host)
            while program.step():
                ticks += 1
                if ticks > self.config.max_ticks:
                    logger.warning("Program exceeded the %d tick budget", self.config.max_ticks)
                    return ExecutionOutcome(TerminationReason.TIMEOUT, ticks=self.config.max_ticks)
        except BlockedMove as exc:
            return ExecutionOutcome(TerminationReason.BLOCKED, ticks=ticks, error=str(exc))
        except ScriptCompileError as exc:
            logger.error("Program rejected: %s", exc)
            return ExecutionOutcome(TerminationReason.OTHER, ticks=ticks, error=str(exc))
        except Exception as exc:
            logger.error("Program raised %s: %s", type(exc).__name__, exc)
            return ExecutionOutcome(TerminationReason.OTHER, ticks=ticks, error=f"{type(exc).__name__}: {exc}")
        return ExecutionOutcome(TerminationReason.COMPLETED, ticks=ticks)
