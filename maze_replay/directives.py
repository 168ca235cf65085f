"""Display directives emitted by the replay scheduler.

A presentation layer receives these through a sink callable and turns them
into drawing and audio calls; coordinates are in grid cells (fractions during
interpolation), directions in 16ths of a turn.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Type, TypeVar, Union

from .config import PEGMAN_HEIGHT, PEGMAN_WIDTH, SQUARE_SIZE


@dataclass(frozen=True)
class PoseDirective:
    x: float
    y: float
    direction16: int
    angle: float | None = None

    def pixel_origin(self) -> tuple[float, float]:
        """Top-left corner of the avatar clip rectangle for ``SQUARE_SIZE`` tiles."""
        return self.x * SQUARE_SIZE + 1, SQUARE_SIZE * (self.y + 0.5) - PEGMAN_HEIGHT / 2 - 8

    def sprite_x(self) -> float:
        """x of the sprite sheet, shifted so the frame for ``direction16`` shows in the clip."""
        return self.x * SQUARE_SIZE - self.direction16 * PEGMAN_WIDTH + 1


@dataclass(frozen=True)
class MarkerDirective:
    index: int
    visible: bool


@dataclass(frozen=True)
class SoundDirective:
    name: str
    volume: float


@dataclass(frozen=True)
class LookDirective:
    x: float
    y: float
    degrees: float
    visible: bool = True


@dataclass(frozen=True)
class LookWaveDirective:
    index: int
    visible: bool


@dataclass(frozen=True)
class HighlightDirective:
    block_id: str | None


Directive = Union[
    PoseDirective,
    MarkerDirective,
    SoundDirective,
    LookDirective,
    LookWaveDirective,
    HighlightDirective,
]
DirectiveSink = Callable[[Directive], None]

D = TypeVar("D")


class RecordingSink:
    """Collects directives in emission order."""

    def __init__(self) -> None:
        self.directives: List[Directive] = []

    def __call__(self, directive: Directive) -> None:
        self.directives.append(directive)

    def of_type(self, kind: Type[D]) -> List[D]:
        return [d for d in self.directives if isinstance(d, kind)]

    def clear(self) -> None:
        self.directives.clear()


def discard(directive: Directive) -> None:
    return None
