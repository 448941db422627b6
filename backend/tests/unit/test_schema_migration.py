"""The initial schema migration applies and reverts on a non-Postgres database."""

import importlib.util
from pathlib import Path

from alembic.migration import MigrationContext
from alembic.operations import Operations
import pytest
from sqlalchemy import create_engine, inspect

MIGRATION = Path(__file__).resolve().parents[2] / "alembic" / "versions" / "001_movt_schema.py"


@pytest.fixture
def migration():
    spec = importlib.util.spec_from_file_location("movt_schema_001", MIGRATION)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_upgrade_then_downgrade_on_sqlite(migration):
    engine = create_engine("sqlite://")

    with engine.begin() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            migration.upgrade()
        assert {"appointments", "appointment_ratings", "chat_threads"} <= set(inspect(conn).get_table_names())

        with Operations.context(MigrationContext.configure(conn)):
            migration.downgrade()
        assert inspect(conn).get_table_names() == []

    engine.dispose()
