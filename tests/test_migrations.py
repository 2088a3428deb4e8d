from pathlib import Path

import sqlalchemy as sa
from alembic import command
from alembic.config import Config

import apartment_admin.config as app_config

ROOT = Path(__file__).resolve().parents[1]


def _alembic_config() -> Config:
    config = Config()
    config.set_main_option("script_location", str(ROOT / "apartment_admin" / "migrations"))
    return config


def test_baseline_migration_creates_ledger_tables(tmp_path, monkeypatch):
    db_url = f"sqlite:///{tmp_path / 'migrations.db'}"
    monkeypatch.setattr(app_config.settings, "database_url", db_url, raising=False)

    command.upgrade(_alembic_config(), "head")

    engine = sa.create_engine(db_url)
    try:
        inspector = sa.inspect(engine)
        tables = set(inspector.get_table_names())
        assert {"admins", "apartments", "dues", "payments", "expenses", "audit_logs"} <= tables
        due_columns = {column["name"] for column in inspector.get_columns("dues")}
        assert {"late_fee_applied", "version", "is_deleted"} <= due_columns
    finally:
        engine.dispose()


def test_baseline_downgrade_drops_tables(tmp_path, monkeypatch):
    db_url = f"sqlite:///{tmp_path / 'downgrade.db'}"
    monkeypatch.setattr(app_config.settings, "database_url", db_url, raising=False)
    config = _alembic_config()

    command.upgrade(config, "head")
    command.downgrade(config, "base")

    engine = sa.create_engine(db_url)
    try:
        assert set(sa.inspect(engine).get_table_names()) <= {"alembic_version"}
    finally:
        engine.dispose()
