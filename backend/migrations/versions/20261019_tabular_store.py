"""Create the local tabular store (named tables of JSON cell rows)

Revision ID: 20261019_tabular_store
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_tabular_store"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "store_tables",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default="1"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_store_tables_name", "store_tables", ["name"], unique=True)

    op.create_table(
        "store_rows",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("table_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("cells", sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(["table_id"], ["store_tables.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_store_rows_table_id", "store_rows", ["table_id"], unique=False)
    op.create_index("ix_store_rows_table_position", "store_rows", ["table_id", "position"], unique=False)


def downgrade():
    op.drop_index("ix_store_rows_table_position", table_name="store_rows")
    op.drop_index("ix_store_rows_table_id", table_name="store_rows")
    op.drop_table("store_rows")
    op.drop_index("ix_store_tables_name", table_name="store_tables")
    op.drop_table("store_tables")
