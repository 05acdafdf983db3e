"""Library circulation: students, items, loans.

- students: identity + contact columns, unique student_number / physical_id
- items: copy counts with bounds checks, unique accession_number / physical_id
- loans: one row per borrow; fine columns in NUMERIC(10,2)
- partial unique index: at most one unreturned loan per (student, item)
"""

from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = "001_library_circulation"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=False), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=False), server_default=sa.func.now(), nullable=False),
    ]


def upgrade():
    # ---------- students ----------
    op.create_table(
        "students",
        sa.Column("id", sa.String(24), primary_key=True),
        sa.Column("student_number", sa.String(32), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("year_level", sa.String(32), nullable=True),
        sa.Column("adviser", sa.String(255), nullable=True),
        sa.Column("mobile", sa.String(32), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("facebook", sa.String(255), nullable=True),
        sa.Column("physical_id", sa.String(64), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("physical_id", name="uq_students_physical_id"),
    )
    op.create_index("ix_students_student_number", "students", ["student_number"], unique=True)

    # ---------- items ----------
    op.create_table(
        "items",
        sa.Column("id", sa.String(24), primary_key=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("author", sa.String(255), nullable=True),
        sa.Column("category", sa.String(64), nullable=False, server_default="book"),
        sa.Column("accession_number", sa.String(64), nullable=False),
        sa.Column("physical_id", sa.String(64), nullable=True),
        sa.Column("total_copies", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("available_copies", sa.Integer(), nullable=False, server_default="1"),
        *_timestamps(),
        sa.UniqueConstraint("physical_id", name="uq_items_physical_id"),
        sa.CheckConstraint("total_copies >= 1", name="ck_items_total_copies_positive"),
        sa.CheckConstraint(
            "available_copies >= 0 AND available_copies <= total_copies",
            name="ck_items_available_copies_bounds",
        ),
    )
    op.create_index("ix_items_accession_number", "items", ["accession_number"], unique=True)

    # ---------- loans ----------
    op.create_table(
        "loans",
        sa.Column("id", sa.String(24), primary_key=True),
        sa.Column("student_id", sa.String(24), sa.ForeignKey("students.id"), nullable=False),
        sa.Column("item_id", sa.String(24), sa.ForeignKey("items.id"), nullable=False),
        sa.Column("borrowed_at", sa.DateTime(timezone=False), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=False), nullable=False),
        sa.Column("returned_at", sa.DateTime(timezone=False), nullable=True),
        sa.Column("returned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("fine_accrued", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("fine_paid", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("last_notification_date", sa.Date(), nullable=True),
        sa.Column("method", sa.String(16), nullable=False, server_default="manual"),
        *_timestamps(),
    )
    op.create_index("ix_loans_student_id", "loans", ["student_id"])
    op.create_index("ix_loans_item_id", "loans", ["item_id"])
    op.create_index("ix_loans_returned_due_date", "loans", ["returned", "due_date"])
    op.create_index(
        "uq_loans_open_student_item",
        "loans",
        ["student_id", "item_id"],
        unique=True,
        postgresql_where=sa.text("returned = false"),
        sqlite_where=sa.text("returned = 0"),
    )


def downgrade():
    op.drop_index("uq_loans_open_student_item", table_name="loans")
    op.drop_index("ix_loans_returned_due_date", table_name="loans")
    op.drop_index("ix_loans_item_id", table_name="loans")
    op.drop_index("ix_loans_student_id", table_name="loans")
    op.drop_table("loans")
    op.drop_index("ix_items_accession_number", table_name="items")
    op.drop_table("items")
    op.drop_index("ix_students_student_number", table_name="students")
    op.drop_table("students")
