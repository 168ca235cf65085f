import json
import tempfile
import unittest
from pathlib import Path

from maze_replay import CommandKind, CommandLog, CommandRecord, Direction, MazeGrid, MazeSession
from maze_replay.storage import load_maze, log_digest, maze_from_document, read_log, write_log

LEVEL_1 = [
    [0, 0, 0, 0, 0, 0, 0],
    [0, 1, 1, 1, 1, 1, 0],
    [0, 1, 1, 1, 1, 1, 0],
    [0, 1, 1, 1, 1, 1, 0],
    [0, 1, 2, 3, 1, 3, 0],
    [0, 1, 1, 1, 1, 1, 0],
    [0, 0, 0, 0, 0, 0, 0],
]

SOLVER = "while notDone():\n    if isPathEast('look'):\n        moveEast('move')\n"


class MazeDocumentTests(unittest.TestCase):
    def test_load_maze_from_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "level1.json"
            path.write_text(json.dumps({"name": "level 1", "map": LEVEL_1}), encoding="utf-8")
            grid = load_maze(path)
        self.assertEqual((grid.width, grid.height), (7, 7))
        self.assertEqual(grid.start, (2, 4))

    def test_schema_rejects_unknown_square(self):
        with self.assertRaisesRegex(ValueError, "schema validation failed"):
            maze_from_document({"map": [[2, 5, 3]]})

    def test_schema_rejects_missing_map(self):
        with self.assertRaisesRegex(ValueError, "schema validation failed"):
            maze_from_document({"name": "empty"})

    def test_grid_invariants_checked_after_schema(self):
        with self.assertRaisesRegex(ValueError, "start"):
            maze_from_document({"map": [[1, 3]]})


class CommandLogFileTests(unittest.TestCase):
    def test_write_then_read_preserves_transcript(self):
        session = MazeSession(MazeGrid.from_rows(LEVEL_1))
        session.run(SOLVER)
        session.play_to_end()

        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "logs" / "run.ndjson"
            digest = write_log(path, session.log)
            lines = path.read_text(encoding="utf-8").splitlines()
            restored = read_log(path)

        self.assertEqual(len(lines), len(session.log))
        self.assertEqual(json.loads(lines[0]), {"action": "look_east", "block_id": "look"})
        self.assertEqual(restored.actions(), session.log.actions())
        self.assertEqual(log_digest(restored), digest)
        self.assertTrue(restored.sealed)
        self.assertTrue(restored.finish_appended)

    def test_numeric_block_ids_survive_the_file_round_trip(self):
        session = MazeSession(MazeGrid.from_rows(LEVEL_1))
        session.run("moveEast(7)\nmoveEast(8)\n")
        session.play_to_end()

        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "run.ndjson"
            digest = write_log(path, session.log)
            restored = read_log(path)

        self.assertEqual([r.block_id for r in restored], ["7", "8", None])
        self.assertEqual(log_digest(restored), digest)

    def test_identical_runs_share_a_digest(self):
        digests = set()
        for _ in range(2):
            session = MazeSession(MazeGrid.from_rows(LEVEL_1))
            session.run(SOLVER)
            digests.add(log_digest(session.log))
        self.assertEqual(len(digests), 1)

    def test_read_rejects_unknown_action(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "bad.ndjson"
            path.write_text('{"action": "jump", "block_id": null}\n', encoding="utf-8")
            with self.assertRaisesRegex(ValueError, "bad.ndjson:1"):
                read_log(path)

    def test_finish_only_allowed_at_tail(self):
        with self.assertRaises(ValueError):
            CommandLog.from_rows(
                [{"action": "finish", "block_id": None}, {"action": "check", "block_id": None}]
            )


class CommandRecordTests(unittest.TestCase):
    def test_wire_names(self):
        self.assertEqual(CommandRecord.move_to(Direction.SOUTH).action, "south")
        self.assertEqual(CommandRecord.look_at(Direction.WEST).action, "look_west")
        self.assertEqual(CommandRecord.from_action("fail_forward").kind, CommandKind.FAIL_FORWARD)
        self.assertEqual(CommandRecord.from_action("look_north").direction, Direction.NORTH)

    def test_direction_must_match_kind(self):
        with self.assertRaises(ValueError):
            CommandRecord(CommandKind.MOVE_TO)
        with self.assertRaises(ValueError):
            CommandRecord(CommandKind.CHECK, Direction.EAST)
        with self.assertRaises(ValueError):
            CommandRecord.from_action("move_to")

    def test_finish_only_through_controlled_append(self):
        log = CommandLog()
        with self.assertRaises(ValueError):
            log.append(CommandRecord.finish())
        with self.assertRaises(RuntimeError):
            log.append_finish()
        log.seal()
        log.append_finish()
        with self.assertRaises(RuntimeError):
            log.append_finish()


if __name__ == "__main__":
    unittest.main()
