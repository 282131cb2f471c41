import unittest
from decimal import Decimal

from livebingo.game.state import RoundStatus
from livebingo.realtime import RoomChannel, RoomSnapshot


def _snapshot(room_id=1, status=RoundStatus.WAITING, called=(), players=0):
    return RoomSnapshot(
        room_id=room_id,
        status=status,
        current_players=players,
        max_players=50,
        pool_size=75,
        called_numbers=tuple(called),
        current_number=called[-1] if called else None,
        prizes={"quadra": Decimal("0.00"), "quina": Decimal("0.00"), "bingo": Decimal("0.00")},
    )


class RoomChannelTestCase(unittest.TestCase):
    def setUp(self):
        self.channel = RoomChannel(1)
        self.received: list[RoomSnapshot] = []
        self.unsubscribe = self.channel.subscribe(self.received.append)

    def test_publish_delivers_and_tracks_latest(self):
        snap = _snapshot(players=2)
        self.assertTrue(self.channel.publish(snap))
        self.assertEqual(self.received, [snap])
        self.assertIs(self.channel.latest, snap)

    def test_shorter_history_is_dropped(self):
        self.channel.publish(_snapshot(status=RoundStatus.PLAYING, called=(4, 9)))
        self.assertFalse(
            self.channel.publish(_snapshot(status=RoundStatus.PLAYING, called=(4,)))
        )
        self.assertEqual(len(self.received), 1)
        self.assertEqual(self.channel.latest.called_numbers, (4, 9))

    def test_earlier_status_is_dropped(self):
        self.channel.publish(_snapshot(status=RoundStatus.FINISHED, called=(1,)))
        self.assertFalse(
            self.channel.publish(_snapshot(status=RoundStatus.PLAYING, called=(1,)))
        )

    def test_same_state_is_redelivered(self):
        self.channel.publish(_snapshot(players=1))
        self.assertTrue(self.channel.publish(_snapshot(players=2)))
        self.assertEqual(len(self.received), 2)

    def test_wrong_room_rejected(self):
        with self.assertRaises(ValueError):
            self.channel.publish(_snapshot(room_id=2))

    def test_unsubscribe_and_close(self):
        self.unsubscribe()
        self.channel.publish(_snapshot())
        self.assertEqual(self.received, [])
        self.channel.close()
        self.assertFalse(self.channel.publish(_snapshot(players=3)))

    def test_snapshot_is_immutable(self):
        snap = _snapshot()
        with self.assertRaises(AttributeError):
            snap.current_players = 5


if __name__ == "__main__":
    unittest.main()
