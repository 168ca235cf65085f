"""Sandboxed execution and deterministic replay of block-programmed maze runs."""

from .commands import CommandKind, CommandLog, CommandRecord
from .config import CrashType, ExecutionConfig, ReplayConfig, SessionConfig, Skin
from .errors import BlockedMove, MazeError, ScriptCompileError
from .execution import ExecutionDriver, ExecutionOutcome, ResultType, TerminationReason
from .library import MazeLibrary, RunSummary
from .replay import ReplayScheduler
from .script import SandboxedProgram, ScriptHost
from .session import MazeSession
from .timers import TimerQueue
from .world import AgentPose, Direction, FinishSet, MazeGrid, SquareType, WorldModel

__all__ = [
    "AgentPose",
    "BlockedMove",
    "CommandKind",
    "CommandLog",
    "CommandRecord",
    "CrashType",
    "Direction",
    "ExecutionConfig",
    "ExecutionDriver",
    "ExecutionOutcome",
    "FinishSet",
    "MazeError",
    "MazeGrid",
    "MazeLibrary",
    "MazeSession",
    "ReplayConfig",
    "ReplayScheduler",
    "ResultType",
    "RunSummary",
    "SandboxedProgram",
    "ScriptCompileError",
    "ScriptHost",
    "SessionConfig",
    "Skin",
    "SquareType",
    "TerminationReason",
    "TimerQueue",
    "WorldModel",
]
