import unittest

from maze_replay import TimerQueue


class TimerQueueTests(unittest.TestCase):
    def test_fires_in_due_order_with_ties_in_schedule_order(self):
        timers = TimerQueue()
        fired = []
        timers.schedule(30, lambda: fired.append("c"))
        timers.schedule(10, lambda: fired.append("a"))
        timers.schedule(10, lambda: fired.append("b"))

        self.assertEqual(timers.advance(9), 0)
        self.assertEqual(timers.advance(1), 2)
        self.assertEqual(fired, ["a", "b"])
        timers.advance(100)
        self.assertEqual(fired, ["a", "b", "c"])
        self.assertEqual(timers.pending, 0)

    def test_callbacks_can_chain(self):
        timers = TimerQueue()
        fired = []

        def first():
            fired.append(timers.now)
            timers.schedule(5, lambda: fired.append(timers.now))

        timers.schedule(10, first)
        timers.run_until_idle()
        self.assertEqual(fired, [10, 15])

    def test_cancel_all_drops_pending_and_stale_handles(self):
        timers = TimerQueue()
        fired = []
        timers.schedule(10, lambda: fired.append(1))
        timers.schedule(20, lambda: fired.append(2))

        self.assertEqual(timers.cancel_all(), 2)
        self.assertEqual(timers.pending, 0)
        self.assertEqual(timers.advance(100), 0)
        self.assertEqual(fired, [])

    def test_reset_inside_callback_stops_later_callbacks(self):
        timers = TimerQueue()
        fired = []
        timers.schedule(10, lambda: (fired.append("reset"), timers.cancel_all()))
        timers.schedule(10, lambda: fired.append("orphan"))
        timers.advance(50)
        self.assertEqual(fired, ["reset"])

    def test_cancelled_handle_does_not_fire(self):
        timers = TimerQueue()
        fired = []
        handle = timers.schedule(10, lambda: fired.append(1))
        handle.cancel()
        self.assertEqual(timers.pending, 0)
        timers.advance(20)
        self.assertEqual(fired, [])


if __name__ == "__main__":
    unittest.main()
