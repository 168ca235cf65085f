from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Sequence

from .world import Direction


class CommandKind(Enum):
    MOVE_TO = "move_to"
    LOOK_AT = "look_at"
    FAIL_FORWARD = "fail_forward"
    FAIL_BACKWARD = "fail_backward"
    CHECK = "check"
    FINISH = "finish"


DIRECTED_KINDS = frozenset({CommandKind.MOVE_TO, CommandKind.LOOK_AT})


@dataclass(frozen=True)
class CommandRecord:
    """One entry of the action transcript.

    ``block_id`` names the source block and is only used for highlighting.
    """

    kind: CommandKind
    direction: Direction | None = None
    block_id: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.kind, CommandKind):
            raise ValueError(f"Unknown command kind: {self.kind!r}")
        if (self.kind in DIRECTED_KINDS) != (self.direction is not None):
            raise ValueError(f"{self.kind.value} record direction mismatch: {self.direction!r}")

    @classmethod
    def move_to(cls, direction: Direction, block_id: str | None = None) -> "CommandRecord":
        return cls(CommandKind.MOVE_TO, direction, block_id)

    @classmethod
    def look_at(cls, direction: Direction, block_id: str | None = None) -> "CommandRecord":
        return cls(CommandKind.LOOK_AT, direction, block_id)

    @classmethod
    def fail_forward(cls, block_id: str | None = None) -> "CommandRecord":
        return cls(CommandKind.FAIL_FORWARD, block_id=block_id)

    @classmethod
    def fail_backward(cls, block_id: str | None = None) -> "CommandRecord":
        return cls(CommandKind.FAIL_BACKWARD, block_id=block_id)

    @classmethod
    def check(cls) -> "CommandRecord":
        return cls(CommandKind.CHECK)

    @classmethod
    def finish(cls) -> "CommandRecord":
        return cls(CommandKind.FINISH)

    @property
    def action(self) -> str:
        """Wire name: ``east``, ``look_north``, ``fail_forward``, ``check`` ..."""
        if self.kind is CommandKind.MOVE_TO:
            return self.direction.name.lower()
        if self.kind is CommandKind.LOOK_AT:
            return f"look_{self.direction.name.lower()}"
        return self.kind.value

    @classmethod
    def from_action(cls, action: str, block_id: str | None = None) -> "CommandRecord":
        directions = {d.name.lower(): d for d in Direction}
        if action in directions:
            return cls.move_to(directions[action], block_id)
        if action.startswith("look_") and action[5:] in directions:
            return cls.look_at(directions[action[5:]], block_id)
        try:
            kind = CommandKind(action)
        except ValueError:
            raise ValueError(f"Unknown action: {action!r}") from None
        if kind in DIRECTED_KINDS:
            raise ValueError(f"Unknown action: {action!r}")
        return cls(kind, block_id=block_id)


class CommandLog:
    """Ordered transcript of one run.

    Built by the execution driver, then sealed. After sealing the only
    permitted mutation is a single ``append_finish``.
    """

    def __init__(self, records: Sequence[CommandRecord] = ()) -> None:
        self._records: List[CommandRecord] = list(records)
        self._sealed = False
        self._finish_appended = False

    def append(self, record: CommandRecord) -> None:
        if self._sealed:
            raise RuntimeError("Command log is sealed.")
        if record.kind is CommandKind.FINISH:
            raise ValueError("Finish records are only appended during replay.")
        self._records.append(record)

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def finish_appended(self) -> bool:
        return self._finish_appended

    def append_finish(self) -> CommandRecord:
        if not self._sealed:
            raise RuntimeError("Finish can only be appended to a sealed log.")
        if self._finish_appended:
            raise RuntimeError("Finish record already appended.")
        record = CommandRecord.finish()
        self._records.append(record)
        self._finish_appended = True
        return record

    def actions(self) -> List[str]:
        return [r.action for r in self._records]

    def to_rows(self) -> List[dict]:
        return [{"action": r.action, "block_id": r.block_id} for r in self._records]

    @classmethod
    def from_rows(cls, rows: Sequence[dict]) -> "CommandLog":
        """Rebuild a sealed log; a trailing finish row restores the appended flag."""
        records = [CommandRecord.from_action(row["action"], row.get("block_id")) for row in rows]
        finish_rows = [i for i, r in enumerate(records) if r.kind is CommandKind.FINISH]
        if finish_rows and finish_rows != [len(records) - 1]:
            raise ValueError("A finish record may only appear once, at the end of the log.")
        log = cls(records[:-1] if finish_rows else records)
        log.seal()
        if finish_rows:
            log.append_finish()
        return log

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CommandRecord]:
        return iter(self._records)

    def __getitem__(self, index: int) -> CommandRecord:
        return self._records[index]

    def __repr__(self) -> str:
        return f"CommandLog({self.actions()!r})"
