"""Tests for the Alembic migration environment."""

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

import teamhub

ALEMBIC_INI = Path(teamhub.__file__).parent / "alembic.ini"
TABLES = {"users", "players", "events", "confirmations", "messages", "news"}


def _config(url: str) -> Config:
    cfg = Config(str(ALEMBIC_INI))
    cfg.set_main_option("sqlalchemy.url", url)
    return cfg


def test_upgrade_and_downgrade(tmp_path):
    db_file = tmp_path / "migrations.db"
    cfg = _config(f"sqlite+aiosqlite:///{db_file}")

    command.upgrade(cfg, "head")

    engine = create_engine(f"sqlite:///{db_file}")
    try:
        tables = set(inspect(engine).get_table_names())
        assert TABLES <= tables
        assert "alembic_version" in tables

        unique = inspect(engine).get_unique_constraints("confirmations")
        assert any(set(c["column_names"]) == {"event_id", "player_id"} for c in unique)
    finally:
        engine.dispose()

    command.downgrade(cfg, "base")

    engine = create_engine(f"sqlite:///{db_file}")
    try:
        assert not TABLES & set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
