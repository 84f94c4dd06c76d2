"""add product q&a

Revision ID: 0003_product_qna
Revises: 0002_catalog
Create Date: 2026-10-14 16:10:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0003_product_qna"
down_revision = "0002_catalog"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "product_qna",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("user_name", sa.String(length=64), nullable=False),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("answer", sa.Text(), nullable=True),
        sa.Column("is_secret", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("answered_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["product_id"], ["products.id"], name="fk_product_qna_product_id_products", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name="fk_product_qna_user_id_users", ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_product_qna"),
    )
    op.create_index("ix_product_qna_user_id", "product_qna", ["user_id"], unique=False)
    op.create_index("ix_product_qna_product_id_is_deleted", "product_qna", ["product_id", "is_deleted"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_product_qna_product_id_is_deleted", table_name="product_qna")
    op.drop_index("ix_product_qna_user_id", table_name="product_qna")
    op.drop_table("product_qna")
