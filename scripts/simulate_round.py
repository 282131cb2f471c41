"""Play one accelerated round on an in-memory database and print what happens."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from livebingo import workflows
from livebingo.config import GameConfig
from livebingo.game.state import RoundStatus
from livebingo.game.timers import AsyncioTimers
from livebingo.models import Base, BingoRoom
from livebingo.runner import LiveRoom

FAST = GameConfig(
    draw_interval_seconds=0.05,
    first_draw_delay_seconds=0.05,
    auto_start_grace_seconds=0.1,
    bingo_finalize_delay_seconds=0.05,
)


async def play(player_count: int = 4) -> None:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, future=True, expire_on_commit=False)

    with Session.begin() as session:
        admin = workflows.register_user(session, "admin", role="admin")
        room = workflows.create_room(session, admin, name="Demo", pool_size=FAST.pool_size)
        user_ids = []
        for i in range(player_count):
            user = workflows.register_user(session, f"player{i + 1}")
            user.balance = Decimal("50")
            session.flush()
            user_ids.append(user.id)
        room_id = room.id

    done = asyncio.Event()
    live = LiveRoom(Session, room_id, timers=AsyncioTimers(), config=FAST)
    cards = {}

    def on_snapshot(snapshot):
        if snapshot.status is RoundStatus.PLAYING and snapshot.current_number is not None:
            # every player marks as soon as the number is shown
            for user_id, card in cards.items():
                position = card.position_of(snapshot.current_number)
                if position is not None:
                    live.mark(user_id, position)
        if snapshot.status is RoundStatus.FINISHED:
            done.set()

    live.channel.subscribe(on_snapshot)
    live.refresh()
    for user_id in user_ids:
        cards[user_id] = live.join(user_id)

    await asyncio.wait_for(done.wait(), timeout=30)
    live.close()

    with Session() as session:
        room = session.get(BingoRoom, room_id)
        print(f"Round finished after {len(room.called_numbers)} numbers")
        for award in workflows.list_awards(session, room):
            status = "paid" if award.paid_to_player else "retained"
            print(f"  {award.tier:<6} {award.user.username:<8} {award.amount} ({status})")
    engine.dispose()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s [%(name)s] %(message)s")
    asyncio.run(play())


if __name__ == "__main__":
    main()
