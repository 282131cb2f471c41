from decimal import Decimal

from sqlalchemy.orm import sessionmaker

from livebingo import workflows
from livebingo.config import DEPOSIT_AMOUNTS, LIVE_DRAWING_POOL_SIZE
from livebingo.db.engine import make_engine
from livebingo.models import Base


def main() -> None:
    """Reset the development database and fill it with sample rooms and players."""
    engine = make_engine()

    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
        Base.metadata.drop_all(bind=conn)
        conn.exec_driver_sql("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, expire_on_commit=False)

    with Session.begin() as session:
        admin = workflows.register_user(
            session, "bingo_admin", email="admin@example.com", role="admin"
        )

        players = []
        for username, full_name in (
            ("alice", "Alice Souza"),
            ("bruno", "Bruno Lima"),
            ("carla", "Carla Dias"),
        ):
            user = workflows.register_user(
                session, username, email=f"{username}@example.com", full_name=full_name
            )
            deposit = workflows.request_deposit(session, user, DEPOSIT_AMOUNTS[1])
            workflows.complete_deposit(session, deposit)
            players.append(user)

        main_room = workflows.create_room(session, admin, name="Sala Principal")
        workflows.create_room(
            session,
            admin,
            name="Sala Relâmpago",
            card_price=Decimal("2"),
            max_players=20,
            quadra_prize=Decimal("10"),
            quina_prize=Decimal("25"),
            bingo_prize=Decimal("50"),
        )
        workflows.create_room(
            session,
            admin,
            name="Sorteio ao Vivo",
            card_price=Decimal("5"),
            quadra_prize=Decimal("20"),
            quina_prize=Decimal("30"),
            bingo_prize=Decimal("60"),
            pool_size=LIVE_DRAWING_POOL_SIZE,
        )

        for user in players[:2]:
            workflows.enter_room(session, main_room, user)
        workflows.post_chat_message(session, main_room, players[0], "Boa sorte a todos!")

    print("Development database seeded.")


if __name__ == "__main__":
    main()
