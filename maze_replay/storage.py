"""Maze documents and command-log files.

Mazes are JSON documents (``{"name": ..., "map": [[0, 1, 2, 3], ...]}``);
command logs are NDJSON, one ``{"action", "block_id"}`` row per line. Both
are checked against the JSON Schemas shipped in ``schemas/``.
"""

from __future__ import annotations

import hashlib
import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable, List

from jsonschema import Draft202012Validator

from .commands import CommandLog
from .world import MazeGrid

logger = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).parent / "schemas"
MAZE_SCHEMA = "maze.schema.json"
RECORD_SCHEMA = "command_record.schema.json"


@lru_cache(maxsize=None)
def _validator(schema_name: str) -> Draft202012Validator:
    schema = json.loads((SCHEMA_DIR / schema_name).read_text(encoding="utf-8"))
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)


def validate_or_raise(payload: Any, schema_name: str, where: str = "") -> None:
    errors = sorted(_validator(schema_name).iter_errors(payload), key=lambda e: tuple(str(p) for p in e.path))
    if not errors:
        return
    preview = []
    for err in errors[:10]:
        field = "/".join(str(p) for p in err.path) or "<root>"
        preview.append(f"{field}: {err.message}")
    prefix = f"{where}: " if where else ""
    raise ValueError(f"{prefix}schema validation failed: " + " | ".join(preview))


def canonical_json(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def log_digest(log: CommandLog) -> str:
    """sha256 over the canonical rows; identical transcripts give identical digests."""
    return hashlib.sha256(canonical_json(log.to_rows()).encode("utf-8")).hexdigest()


def maze_from_document(document: dict) -> MazeGrid:
    validate_or_raise(document, MAZE_SCHEMA, "maze")
    return MazeGrid.from_rows(document["map"])


def load_maze(path: Path) -> MazeGrid:
    document = json.loads(Path(path).read_text(encoding="utf-8"))
    grid = maze_from_document(document)
    logger.debug("Loaded %dx%d maze from %s", grid.width, grid.height, path)
    return grid


def write_log(path: Path, log: CommandLog) -> str:
    """Write ``log`` as NDJSON, replacing any existing file; returns its digest."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        for row in log.to_rows():
            f.write(canonical_json(row) + "\n")
    return log_digest(log)


def _read_rows(lines: Iterable[str], source: str) -> List[dict]:
    rows = []
    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        row = json.loads(line)
        validate_or_raise(row, RECORD_SCHEMA, f"{source}:{lineno}")
        rows.append(row)
    return rows


def read_log(path: Path) -> CommandLog:
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        rows = _read_rows(f, str(path))
    return CommandLog.from_rows(rows)
