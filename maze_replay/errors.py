from __future__ import annotations


class MazeError(Exception):
    """Base class for errors raised by the maze engine."""


class BlockedMove(MazeError):
    """The agent tried to walk into a wall or off the grid.

    Fatal to the running script: the host latches it, so catching it inside
    the program does not let the run continue.
    """

    def __init__(self, direction, block_id: str | None = None) -> None:
        super().__init__(f"Blocked move {direction.name.lower()} (block {block_id!r})")
        self.direction = direction
        self.block_id = block_id


class ScriptCompileError(MazeError):
    """The user program uses a construct the sandbox does not accept."""
