import importlib.util
import pathlib

import pytest
import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations

VERSIONS = pathlib.Path(__file__).resolve().parents[2] / "db" / "migrations" / "versions"


def _load_revision(name: str):
    spec = importlib.util.spec_from_file_location(name, VERSIONS / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def migrated_sqlite():
    engine = sa.create_engine("sqlite://")
    revision = _load_revision("001_library_circulation_tables")
    with engine.begin() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            revision.upgrade()
    yield engine
    engine.dispose()


def _insert_loan(conn, loan_id: str, returned: bool) -> None:
    conn.execute(
        sa.text(
            "INSERT INTO loans (id, student_id, item_id, borrowed_at, due_date, returned) "
            "VALUES (:id, 's1', 'i1', '2025-03-01 00:00:00', '2025-03-08 00:00:00', :returned)"
        ),
        {"id": loan_id, "returned": returned},
    )


def test_open_loan_index_is_partial_on_sqlite(migrated_sqlite):
    with migrated_sqlite.connect() as conn:
        ddl = conn.execute(
            sa.text("SELECT sql FROM sqlite_master WHERE name = 'uq_loans_open_student_item'")
        ).scalar_one()
    assert "WHERE returned = 0" in ddl


def test_returned_loan_does_not_block_reborrow(migrated_sqlite):
    with migrated_sqlite.begin() as conn:
        conn.execute(sa.text("INSERT INTO students (id, student_number, full_name) VALUES ('s1', '2024-0001', 'Juan')"))
        conn.execute(sa.text("INSERT INTO items (id, title, accession_number) VALUES ('i1', 'Noli', 'ACC-1')"))
        _insert_loan(conn, "l1", returned=True)
        _insert_loan(conn, "l2", returned=False)

    with pytest.raises(sa.exc.IntegrityError):
        with migrated_sqlite.begin() as conn:
            _insert_loan(conn, "l3", returned=False)
