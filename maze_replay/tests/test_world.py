import unittest

from maze_replay import BlockedMove, Direction, MazeGrid, WorldModel
from maze_replay.world import constrain_direction4, constrain_direction16

LEVEL_1 = [
    [0, 0, 0, 0, 0, 0, 0],
    [0, 1, 1, 1, 1, 1, 0],
    [0, 1, 1, 1, 1, 1, 0],
    [0, 1, 1, 1, 1, 1, 0],
    [0, 1, 2, 3, 1, 3, 0],
    [0, 1, 1, 1, 1, 1, 0],
    [0, 0, 0, 0, 0, 0, 0],
]

# Start boxed in: off-grid to the north, south and west, a wall to the east.
BOXED = [[2, 0, 3]]


class GridTests(unittest.TestCase):
    def test_requires_exactly_one_start(self):
        with self.assertRaises(ValueError):
            MazeGrid.from_rows([[1, 3]])
        with self.assertRaises(ValueError):
            MazeGrid.from_rows([[2, 2, 3]])

    def test_requires_a_finish(self):
        with self.assertRaises(ValueError):
            MazeGrid.from_rows([[2, 1]])

    def test_rejects_ragged_rows_and_unknown_squares(self):
        with self.assertRaises(ValueError):
            MazeGrid.from_rows([[2, 1], [3]])
        with self.assertRaises(ValueError):
            MazeGrid.from_rows([[2, 7, 3]])

    def test_off_grid_reads_as_wall(self):
        grid = MazeGrid.from_rows(LEVEL_1)
        self.assertFalse(grid.is_walkable(-1, 4))
        self.assertFalse(grid.is_walkable(7, 4))
        self.assertEqual(grid.to_rows(), LEVEL_1)


class DirectionTests(unittest.TestCase):
    def test_turns_wrap_mod_four(self):
        self.assertEqual(Direction.NORTH.turned(-1), Direction.WEST)
        self.assertEqual(Direction.WEST.turned(1), Direction.NORTH)
        self.assertEqual(Direction.EAST.opposite(), Direction.WEST)
        self.assertEqual(constrain_direction4(-5), 3)

    def test_direction16_wraps_both_ends(self):
        self.assertEqual(constrain_direction16(-1), 15)
        self.assertEqual(constrain_direction16(16), 0)
        self.assertEqual(constrain_direction16(17.4), 1)
        self.assertEqual(constrain_direction16(-16.6), 15)


class WorldModelTests(unittest.TestCase):
    def test_is_path_in_open_corridor(self):
        world = WorldModel(MazeGrid.from_rows(LEVEL_1))
        self.assertTrue(world.is_path(Direction.EAST))
        self.assertTrue(world.is_path(Direction.NORTH))

    def test_blocked_move_leaves_pose_unchanged(self):
        world = WorldModel(MazeGrid.from_rows(BOXED))
        for direction in Direction:
            self.assertFalse(world.is_path(direction))
            with self.assertRaises(BlockedMove):
                world.move(direction)
            self.assertEqual(world.pose.cell, (0, 0))

    def test_finish_consumed_once_per_cell(self):
        world = WorldModel(MazeGrid.from_rows(LEVEL_1))
        self.assertEqual(world.remaining_finish_count(), 2)

        world.move(Direction.EAST)
        self.assertEqual(world.check_finish(), 0)
        self.assertEqual(world.remaining_finish_count(), 1)

        # Revisiting a consumed cell is a no-op.
        world.move(Direction.WEST)
        world.move(Direction.EAST)
        self.assertIsNone(world.check_finish())
        self.assertEqual(world.remaining_finish_count(), 1)

        world.move(Direction.EAST)
        self.assertIsNone(world.check_finish())
        world.move(Direction.EAST)
        self.assertEqual(world.check_finish(), 1)
        self.assertTrue(world.all_finishes_consumed())
        self.assertFalse(world.not_done())

        self.assertIsNone(world.check_finish())
        self.assertEqual(world.remaining_finish_count(), 0)

    def test_reset_restores_start_and_finishes(self):
        world = WorldModel(MazeGrid.from_rows(LEVEL_1))
        world.move(Direction.EAST)
        world.check_finish()
        world.reset()
        self.assertEqual(world.pose.cell, (2, 4))
        self.assertEqual(world.pose.direction, Direction.EAST)
        self.assertEqual(world.remaining_finish_count(), 2)


if __name__ == "__main__":
    unittest.main()
