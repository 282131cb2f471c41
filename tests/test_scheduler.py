import unittest
from datetime import timedelta

from livebingo.config import DEFAULT_CONFIG
from livebingo.game.scheduler import RoundScheduler, format_countdown, seconds_until
from livebingo.game.state import RoundStatus
from livebingo.game.timers import ManualTimers


class FakeRound:
    """Records scheduler callbacks and hands out a fixed number sequence."""

    def __init__(self, numbers=(1, 2, 3)):
        self.numbers = list(numbers)
        self.drawn: list[int] = []
        self.started = 0
        self.finished = 0
        self.persisted: list = []
        self.fail_next_draw = False

    def start_round(self):
        self.started += 1
        return True

    def draw(self):
        if self.fail_next_draw:
            self.fail_next_draw = False
            raise RuntimeError("storage unavailable")
        if not self.numbers:
            return None
        number = self.numbers.pop(0)
        self.drawn.append(number)
        return number

    def finish(self):
        self.finished += 1

    def persist(self, when):
        self.persisted.append(when)


class RoundSchedulerTestCase(unittest.TestCase):
    def setUp(self):
        self.timers = ManualTimers()
        self.round = FakeRound()
        self.scheduler = RoundScheduler(
            self.timers,
            start_round=self.round.start_round,
            draw=self.round.draw,
            finish=self.round.finish,
            persist_auto_start=self.round.persist,
            config=DEFAULT_CONFIG,
        )

    def _start(self):
        self.scheduler.on_room_update("waiting", 2)
        self.timers.advance(30)

    def test_below_minimum_does_not_schedule(self):
        self.scheduler.on_room_update("waiting", 1)
        self.assertFalse(self.scheduler.auto_start_pending)
        self.assertEqual(self.round.persisted, [])
        self.timers.advance(120)
        self.assertEqual(self.round.started, 0)

    def test_missing_schedule_gets_full_grace_window(self):
        now = self.timers.now()
        self.scheduler.on_room_update("waiting", 2)
        self.assertEqual(self.round.persisted, [now + timedelta(seconds=30)])
        self.assertEqual(self.scheduler.seconds_until_start(), 30)
        self.timers.advance(29)
        self.assertEqual(self.round.started, 0)
        self.timers.advance(1)
        self.assertEqual(self.round.started, 1)
        self.assertIs(self.scheduler.status, RoundStatus.PLAYING)

    def test_stale_schedule_is_pushed_out(self):
        stale = self.timers.now() - timedelta(seconds=5)
        self.scheduler.on_room_update("waiting", 3, stale)
        self.assertEqual(len(self.round.persisted), 1)
        self.assertEqual(self.scheduler.seconds_until_start(), 30)

    def test_future_schedule_uses_remaining_delay(self):
        when = self.timers.now() + timedelta(seconds=12)
        self.scheduler.on_room_update("waiting", 2, when)
        self.assertEqual(self.round.persisted, [])
        self.timers.advance(12)
        self.assertEqual(self.round.started, 1)

    def test_reschedule_cancels_previous_timer(self):
        self.scheduler.on_room_update("waiting", 2)
        self.timers.advance(10)
        later = self.timers.now() + timedelta(seconds=25)
        self.scheduler.on_room_update("waiting", 3, later)
        self.timers.advance(20)
        self.assertEqual(self.round.started, 0)
        self.timers.advance(5)
        self.assertEqual(self.round.started, 1)
        self.assertEqual(self.timers.pending, 1)  # the first draw only

    def test_dropping_below_minimum_cancels_start(self):
        self.scheduler.on_room_update("waiting", 2)
        self.scheduler.on_room_update("waiting", 1)
        self.assertFalse(self.scheduler.auto_start_pending)
        self.timers.advance(60)
        self.assertEqual(self.round.started, 0)

    def test_draw_cadence(self):
        self._start()
        self.assertEqual(self.scheduler.seconds_until_next_draw(), 5)
        self.timers.advance(5)
        self.assertEqual(self.round.drawn, [1])
        self.assertEqual(self.scheduler.seconds_until_next_draw(), 10)
        self.timers.advance(10)
        self.assertEqual(self.round.drawn, [1, 2])

    def test_exhaustion_finishes_round(self):
        self._start()
        self.timers.advance(5 + 10 * 3)
        self.assertEqual(self.round.drawn, [1, 2, 3])
        self.assertEqual(self.round.finished, 1)
        self.assertTrue(self.scheduler.closed)
        self.assertEqual(self.timers.pending, 0)

    def test_schedule_finish_waits_confirmation_delay(self):
        self._start()
        self.timers.advance(5)
        self.scheduler.schedule_finish()
        self.scheduler.schedule_finish()
        self.timers.advance(2)
        self.assertEqual(self.round.finished, 0)
        self.timers.advance(1)
        self.assertEqual(self.round.finished, 1)
        self.assertTrue(self.scheduler.closed)
        self.timers.advance(60)
        self.assertEqual(self.round.drawn, [1])

    def test_started_elsewhere(self):
        self.scheduler.on_room_update("waiting", 2)
        self.scheduler.on_room_update("playing", 2)
        self.assertFalse(self.scheduler.auto_start_pending)
        self.timers.advance(5)
        self.assertEqual(self.round.started, 0)
        self.assertEqual(self.round.drawn, [1])

    def test_finished_update_tears_down(self):
        self._start()
        self.scheduler.on_room_update("finished", 2)
        self.assertTrue(self.scheduler.closed)
        self.timers.advance(60)
        self.assertEqual(self.round.drawn, [])
        self.scheduler.on_room_update("waiting", 5)
        self.assertFalse(self.scheduler.auto_start_pending)

    def test_failed_draw_is_retried(self):
        self._start()
        self.round.fail_next_draw = True
        with self.assertLogs("livebingo.game.scheduler", level="ERROR"):
            with self.assertRaises(RuntimeError):
                self.timers.advance(5)
        self.timers.advance(10)
        self.assertEqual(self.round.drawn, [1])


class TestCountdown(unittest.TestCase):
    def test_format(self):
        self.assertEqual(format_countdown(0), "00:00:00")
        self.assertEqual(format_countdown(3725), "01:02:05")
        self.assertEqual(format_countdown(9, with_hours=False), "0:09")
        self.assertEqual(format_countdown(-4), "00:00:00")

    def test_seconds_until(self):
        timers = ManualTimers()
        now = timers.now()
        self.assertEqual(seconds_until(now + timedelta(seconds=9.7), now), 9)
        self.assertEqual(seconds_until(now - timedelta(seconds=3), now), 0)
        self.assertEqual(seconds_until(None, now), 0)


if __name__ == "__main__":
    unittest.main()
