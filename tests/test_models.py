import random
import unittest
from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from livebingo.errors import InsufficientBalanceError
from livebingo.game.evaluator import FREE_INDEX
from livebingo.game.state import RoundStatus
from livebingo.models import (
    Base,
    BingoCard,
    BingoRoom,
    ChatMessage,
    Deposit,
    PrizeAward,
    User,
)


class ModelTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )

    def tearDown(self):
        self.engine.dispose()


class TestUser(ModelTestCase):
    def test_email_is_normalized(self):
        with self.Session.begin() as session:
            user = User(username="ana", email="  Ana@Example.COM ")
            session.add(user)
            session.flush()
            self.assertEqual(user.email, "ana@example.com")
            self.assertIs(User.get_by_email(session, "ANA@example.com"), user)
            self.assertIs(User.get_by_username(session, "ana"), user)

    def test_credit_and_debit(self):
        user = User(username="bia", balance=Decimal("15"))
        self.assertEqual(user.credit(5), Decimal("20.00"))
        self.assertEqual(user.debit("12.5"), Decimal("7.50"))
        with self.assertRaises(InsufficientBalanceError):
            user.debit(10)
        self.assertEqual(user.balance, Decimal("7.50"))
        with self.assertRaises(ValueError):
            user.credit(-1)

    def test_unique_username(self):
        with self.assertRaises(IntegrityError):
            with self.Session.begin() as session:
                session.add(User(username="dup"))
                session.add(User(username="dup"))

    def test_role(self):
        self.assertFalse(User(username="p").is_admin)
        self.assertTrue(User(username="a", role="admin").is_admin)


class TestBingoRoom(ModelTestCase):
    def test_defaults_and_prizes(self):
        with self.Session.begin() as session:
            room = BingoRoom(
                name="Sala 1",
                card_price=Decimal("10"),
                quadra_prize=100,
                quina_prize=500,
                bingo_prize=1000,
            )
            session.add(room)
            session.flush()
            self.assertIs(room.round_status, RoundStatus.WAITING)
            self.assertEqual(room.current_players, 0)
            self.assertEqual(room.called_numbers, [])
            self.assertFalse(room.is_full)
            tiers = room.prize_tiers()
            self.assertEqual([t.name for t in tiers], ["quadra", "quina", "bingo"])
            self.assertEqual([t.level for t in tiers], [1, 2, 3])
            self.assertEqual(tiers[2].amount, Decimal("1000.00"))

    def test_draw_state_frozen_when_finished(self):
        room = BingoRoom(name="x", card_price=1, status="finished")
        room.called_numbers = [3, 8]
        state = room.draw_state()
        self.assertEqual(state.current, 8)
        self.assertTrue(state.frozen)

    def test_to_json(self):
        with self.Session.begin() as session:
            room = BingoRoom(name="Sala", card_price=Decimal("2.5"))
            session.add(room)
            session.flush()
            data = room.to_json()
        self.assertEqual(data["card_price"], "2.50")
        self.assertEqual(data["status"], "waiting")
        self.assertEqual(data["prizes"]["bingo"], "0.00")
        self.assertTrue(data["created_at"].endswith("+00:00"))


class TestBingoCard(ModelTestCase):
    def _fixtures(self, session):
        user = User(username="carla")
        room = BingoRoom(name="Sala", card_price=10)
        session.add_all([user, room])
        session.flush()
        return user, room

    def test_issue_card(self):
        with self.Session.begin() as session:
            user, room = self._fixtures(session)
            card = BingoCard.issue(session, room, user, rng=random.Random(1))
            self.assertIsNotNone(card.id)
            self.assertEqual(len(card.numbers), 25)
            self.assertEqual(card.numbers[FREE_INDEX], 0)
            self.assertIs(BingoCard.get_for_user(session, room.id, user.id), card)
            self.assertEqual(card.position_of(card.numbers[7]), 7)
            self.assertIsNone(card.position_of(0))
            self.assertIsNone(card.position_of(999))

    def test_one_card_per_user_and_room(self):
        with self.assertRaises(IntegrityError):
            with self.Session.begin() as session:
                user, room = self._fixtures(session)
                BingoCard.issue(session, room, user)
                BingoCard.issue(session, room, user)

    def test_flags_are_sticky(self):
        card = BingoCard(room_id=1, user_id=1, numbers=list(range(25)))
        card.marked_positions = [0, 4, 20, 24]
        card.apply_evaluation(card.evaluation())
        self.assertTrue(card.has_quadra)
        card.marked_positions = []
        card.apply_evaluation(card.evaluation())
        self.assertTrue(card.has_quadra)
        self.assertFalse(card.has_quina)


class TestRecords(ModelTestCase):
    def test_award_deposit_and_chat_serialize(self):
        with self.Session.begin() as session:
            user = User(username="duda")
            room = BingoRoom(name="Sala", card_price=10)
            session.add_all([user, room])
            session.flush()
            card = BingoCard.issue(session, room, user)
            award = PrizeAward(
                room_id=room.id,
                card_id=card.id,
                user_id=user.id,
                tier="quadra",
                amount=Decimal("10"),
                paid_to_player=False,
            )
            deposit = Deposit(
                user_id=user.id,
                amount=Decimal("50"),
                bonus_amount=Decimal("5"),
                total_amount=Decimal("55"),
            )
            message = ChatMessage(room_id=room.id, user_id=user.id, message="oi")
            session.add_all([award, deposit, message])
            session.flush()

            self.assertEqual(award.to_json()["username"], "duda")
            self.assertFalse(award.to_json()["paid_to_player"])
            self.assertEqual(deposit.to_json()["status"], "pending")
            self.assertEqual(deposit.to_json()["payment_method"], "pix")
            self.assertEqual(message.to_json()["message"], "oi")

    def test_award_tier_is_constrained(self):
        with self.assertRaises(IntegrityError):
            with self.Session.begin() as session:
                user = User(username="eva")
                room = BingoRoom(name="Sala", card_price=10)
                session.add_all([user, room])
                session.flush()
                card = BingoCard.issue(session, room, user)
                session.add(
                    PrizeAward(
                        room_id=room.id,
                        card_id=card.id,
                        user_id=user.id,
                        tier="jackpot",
                        amount=Decimal("1"),
                    )
                )
                session.flush()


if __name__ == "__main__":
    unittest.main()
