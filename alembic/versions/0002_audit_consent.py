"""audit logs and cookie consents

Revision ID: 0002_audit_consent
Revises: 0001_initial
Create Date: 2026-10-06

"""

from alembic import op
import sqlalchemy as sa

revision = "0002_audit_consent"
down_revision = "0001_initial"
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("actor_user_id", sa.String(length=36), nullable=False),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity_type", sa.String(length=40), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("details_json", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_logs_actor_user_id", "audit_logs", ["actor_user_id"], unique=False)
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"], unique=False)
    op.create_index("ix_audit_logs_entity_type", "audit_logs", ["entity_type"], unique=False)
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"], unique=False)

    op.create_table(
        "cookie_consents",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("necessary", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("analytics", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("marketing", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("location", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("version", sa.String(length=10), nullable=False),
        sa.Column("consented_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_cookie_consents_user_id", "cookie_consents", ["user_id"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_cookie_consents_user_id", table_name="cookie_consents")
    op.drop_table("cookie_consents")
    op.drop_index("ix_audit_logs_entity_id", table_name="audit_logs")
    op.drop_index("ix_audit_logs_entity_type", table_name="audit_logs")
    op.drop_index("ix_audit_logs_action", table_name="audit_logs")
    op.drop_index("ix_audit_logs_actor_user_id", table_name="audit_logs")
    op.drop_table("audit_logs")
