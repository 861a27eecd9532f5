"""create todos table"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_create_todos"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "todos",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("status", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("created", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("lastmodified", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("duedate", sa.DateTime(), nullable=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("projects", sa.Text(), nullable=True),
        sa.Column("contexts", sa.Text(), nullable=True),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_todos_duedate", "todos", ["duedate"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_todos_duedate", table_name="todos")
    op.drop_table("todos")
