from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "4c1e7a9d2b10"
down_revision = None
branch_labels = None
depends_on = None

_RATINGS = (
    "buddy_on_time", "buddy_courteous", "buddy_handling", "buddy_pickup",
    "sales_understanding", "sales_clarity", "sales_professionalism",
    "sales_transparency", "sales_followup", "sales_decision",
    "cx_onboarding", "cx_courteous", "cx_resolution", "cx_communication",
)

def upgrade():
    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("order_id", sa.String(length=50), nullable=False),
        sa.Column("username", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("mobile", sa.String(length=32), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("service_start_datetime", sa.DateTime(timezone=True), nullable=True),
        sa.Column("service_complete_datetime", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_orders_order_id", "orders", ["order_id"], unique=True)

    op.create_table(
        "user_feedback",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("order_id", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("feedback_token", sa.String(length=64), nullable=True),
        sa.Column("token_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("feedback_link", sa.String(length=512), nullable=True),
        sa.Column("feedback_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("feedback_submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("consumed_token", sa.String(length=64), nullable=True),
        sa.Column("form_type", sa.String(length=32), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("experience", sa.String(length=16), nullable=True),
        *[sa.Column(col, sa.SmallInteger(), nullable=True) for col in _RATINGS],
        sa.Column("recommendation", sa.SmallInteger(), nullable=True),
        sa.Column("tip_asked", sa.String(length=3), nullable=True),
        sa.Column("tip_details", sa.Text(), nullable=True),
        sa.Column("liked", sa.Text(), nullable=True),
        sa.Column("improvement", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["order_id"], ["orders.order_id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_user_feedback_order_id", "user_feedback", ["order_id"], unique=True)
    op.create_index("ix_user_feedback_feedback_token", "user_feedback", ["feedback_token"], unique=True)
    op.create_index("ix_user_feedback_consumed_token", "user_feedback", ["consumed_token"], unique=False)
    op.create_index("ix_user_feedback_feedback_submitted_at", "user_feedback", ["feedback_submitted_at"], unique=False)
    op.create_index("ix_user_feedback_form_type", "user_feedback", ["form_type"], unique=False)
    op.create_index("ix_user_feedback_experience", "user_feedback", ["experience"], unique=False)
    op.create_index("ix_user_feedback_form_submitted", "user_feedback", ["form_type", "feedback_submitted_at"], unique=False)

    op.create_table(
        "email_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("order_id", sa.String(length=50), nullable=True),
        sa.Column("to_email", sa.String(length=320), nullable=False),
        sa.Column("template", sa.String(length=64), nullable=False),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("provider_msg_id", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("meta", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_email_logs_order_id", "email_logs", ["order_id"], unique=False)
    op.create_index("ix_email_logs_to_email", "email_logs", ["to_email"], unique=False)
    op.create_index("ix_email_logs_provider_msg_id", "email_logs", ["provider_msg_id"], unique=False)
    op.create_index("ix_email_logs_status", "email_logs", ["status"], unique=False)

def downgrade():
    op.drop_table("email_logs")
    op.drop_table("user_feedback")
    op.drop_table("orders")
