import unittest

from livebingo.errors import RoundStateError
from livebingo.game.state import RoundStatus, can_transition, transition


class TestRoundStatus(unittest.TestCase):
    def test_forward_transitions(self):
        self.assertIs(transition("waiting", RoundStatus.PLAYING), RoundStatus.PLAYING)
        self.assertIs(transition(RoundStatus.PLAYING, "finished"), RoundStatus.FINISHED)

    def test_no_way_back(self):
        self.assertFalse(can_transition("finished", "waiting"))
        self.assertFalse(can_transition("finished", "playing"))
        self.assertFalse(can_transition("playing", "waiting"))
        with self.assertRaises(RoundStateError):
            transition("finished", "playing")

    def test_cannot_skip_playing(self):
        with self.assertRaises(RoundStateError):
            transition("waiting", "finished")

    def test_unknown_status(self):
        with self.assertRaises(ValueError):
            transition("paused", "playing")


if __name__ == "__main__":
    unittest.main()
