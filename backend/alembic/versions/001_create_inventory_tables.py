"""Create inventory tables

Revision ID: 001
Revises: None
Create Date: 2025-02-10 00:00:00.000000+00:00

What:  Creates antibioticos, antibiogramas, antibiograma_antibiotico and salidas.
How:   CREATE TABLE IF NOT EXISTS is not available through op.create_table, so
       databases that already carry the tables should be stamped instead:
       `alembic stamp 001`.

Rollback: downgrade() drops all four tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "antibioticos",
        sa.Column("codigo", sa.String(50), nullable=False),
        sa.Column("nombre", sa.String(255), nullable=False),
        sa.Column("cantidad", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("stock_minimo", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.CheckConstraint("cantidad >= 0", name="ck_antibioticos_cantidad_no_negativa"),
        sa.CheckConstraint("stock_minimo >= 0", name="ck_antibioticos_stock_minimo_no_negativo"),
        sa.PrimaryKeyConstraint("codigo"),
    )

    op.create_table(
        "antibiogramas",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("nombre", sa.String(255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "antibiograma_antibiotico",
        sa.Column("antibiograma_id", sa.Integer(), nullable=False),
        sa.Column("antibiotico_codigo", sa.String(50), nullable=False),
        sa.ForeignKeyConstraint(["antibiograma_id"], ["antibiogramas.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["antibiotico_codigo"], ["antibioticos.codigo"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("antibiograma_id", "antibiotico_codigo"),
    )

    # Append-only outflow log
    op.create_table(
        "salidas",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("antibiograma_id", sa.Integer(), nullable=False),
        sa.Column("unidades", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["antibiograma_id"], ["antibiogramas.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    # Looks up links by antibiotic code (cascade deletes from antibioticos)
    op.create_index(
        "idx_antibiograma_antibiotico_antibiotico",
        "antibiograma_antibiotico",
        ["antibiotico_codigo"],
    )


def downgrade() -> None:
    op.drop_index("idx_antibiograma_antibiotico_antibiotico", table_name="antibiograma_antibiotico")
    op.drop_table("salidas")
    op.drop_table("antibiograma_antibiotico")
    op.drop_table("antibiogramas")
    op.drop_table("antibioticos")
