import unittest

from maze_replay import MazeLibrary, ResultType, SquareType

LEVEL_1 = [
    [0, 0, 0, 0, 0, 0, 0],
    [0, 1, 1, 1, 1, 1, 0],
    [0, 1, 1, 1, 1, 1, 0],
    [0, 1, 1, 1, 1, 1, 0],
    [0, 1, 2, 3, 1, 3, 0],
    [0, 1, 1, 1, 1, 1, 0],
    [0, 0, 0, 0, 0, 0, 0],
]


class LibraryTests(unittest.TestCase):
    def test_create_maze_locates_start_and_finishes(self):
        lib = MazeLibrary()
        grid = lib.create_maze(LEVEL_1)
        self.assertEqual(grid.start, (2, 4))
        self.assertEqual(grid.finishes, ((3, 4), (5, 4)))
        self.assertEqual(grid.cell(0, 0), SquareType.WALL)
        self.assertTrue(grid.is_walkable(2, 2))

    def test_run_program_summarizes_replay(self):
        lib = MazeLibrary()
        grid = lib.create_maze(LEVEL_1)
        session, summary = lib.run_program(grid, "while notDone():\n    moveEast('m')\n")

        self.assertEqual(summary.result, ResultType.UNSET.name)
        self.assertEqual(summary.reason, "completed")
        self.assertTrue(summary.victorious)
        self.assertEqual(summary.finishes_remaining, 0)
        self.assertEqual(summary.records, len(session.log))
        self.assertEqual(session.log.actions(), ["east", "east", "east", "check", "finish"])

    def test_replay_log_reuses_recorded_transcript(self):
        lib = MazeLibrary()
        grid = lib.create_maze(LEVEL_1)
        first, first_summary = lib.run_program(grid, "moveEast('a')\nmoveEast('b')\n")
        _, replay_summary = lib.replay_log(grid, first.log)

        self.assertEqual(replay_summary.result, "REPLAY")
        self.assertEqual(replay_summary.digest, first_summary.digest)
        self.assertEqual(replay_summary.finishes_remaining, 1)
        self.assertFalse(replay_summary.victorious)


if __name__ == "__main__":
    unittest.main()
