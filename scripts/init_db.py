from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from livebingo.db.engine import make_engine
from livebingo.models import Base


def upgrade_db(target_revision: str = "head") -> None:
    """Apply Alembic migrations up to the requested revision."""
    project_root = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def missing_tables() -> list[str]:
    """Tables declared by the models but absent from the configured database."""
    engine = make_engine()
    existing = set(inspect(engine).get_table_names())
    engine.dispose()
    return sorted(set(Base.metadata.tables) - existing)


def main() -> int:
    """Migrate the bingo database to head and confirm every table exists."""
    upgrade_db()
    missing = missing_tables()
    if missing:
        print("Missing tables after migration:", ", ".join(missing))
        return 1
    print("Bingo tables ready:", ", ".join(sorted(Base.metadata.tables)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
