"""cart rules + execution log

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00
"""
from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        "cart_rules",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("shop", sa.String(128), nullable=False),
        sa.Column("name", sa.String(255), nullable=False, server_default=""),
        sa.Column("min_cart_value", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("has_upper_limit", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("max_cart_value", sa.Numeric(12, 2)),
        sa.Column("product_ids", sa.Text, nullable=False, server_default="[]"),
        sa.Column("works_in_reverse", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("allow_multiple_triggers", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("execute_once_per_session", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("prevent_quantity_changes", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
    )
    op.create_index("ix_cart_rules_shop", "cart_rules", ["shop"])

    op.create_table(
        "rule_executions",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("rule_id", sa.String(64), nullable=False),
        sa.Column("shop", sa.String(128)),
        sa.Column("session_id", sa.String(128), nullable=False),
        sa.Column("cart_token", sa.String(128)),
        sa.Column("customer_id", sa.String(64)),
        sa.Column("executed", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
    )
    op.create_index("ix_rule_executions_shop", "rule_executions", ["shop"])
    op.create_index("ix_rule_executions_rule_session", "rule_executions", ["rule_id", "session_id"])

def downgrade():
    op.drop_index("ix_rule_executions_rule_session", table_name="rule_executions")
    op.drop_index("ix_rule_executions_shop", table_name="rule_executions")
    op.drop_table("rule_executions")

    op.drop_index("ix_cart_rules_shop", table_name="cart_rules")
    op.drop_table("cart_rules")
