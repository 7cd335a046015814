"""Initial schema for classroom listings and subscriptions

Revision ID: 0001_initial
Revises:
Create Date: 2025-06-01
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


SUBSCRIPTION_STATUSES = (
    "active",
    "canceled",
    "incomplete",
    "incomplete_expired",
    "past_due",
    "trialing",
    "unpaid",
    "paused",
)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255)),
        sa.Column("classroom_name", sa.String(length=255)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("last_login_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "classrooms",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("prefecture", sa.String(length=32)),
        sa.Column("city", sa.String(length=128)),
        sa.Column("area", sa.String(length=255)),
        sa.Column("address", sa.String(length=255)),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("email", sa.String(length=255)),
        sa.Column("website_url", sa.String(length=512)),
        sa.Column("thumbnail_url", sa.String(length=512)),
        sa.Column("lesson_types", sa.JSON()),
        sa.Column("age_range", sa.String(length=255)),
        sa.Column("monthly_fee_min", sa.Integer()),
        sa.Column("monthly_fee_max", sa.Integer()),
        sa.Column("trial_lesson_available", sa.Boolean(), server_default=sa.false()),
        sa.Column("parking_available", sa.Boolean(), server_default=sa.false()),
        sa.Column("published", sa.Boolean(), server_default=sa.false()),
        sa.Column("draft_saved", sa.Boolean(), server_default=sa.false()),
        sa.Column("last_draft_saved_at", sa.DateTime(timezone=True)),
        sa.Column("instructor_info", sa.Text()),
        sa.Column("pr_points", sa.Text()),
        sa.Column("available_days", sa.JSON()),
        sa.Column("available_times", sa.String(length=255)),
        sa.Column("price_range", sa.String(length=255)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            "monthly_fee_min IS NULL OR monthly_fee_max IS NULL OR monthly_fee_min <= monthly_fee_max",
            name="ck_classroom_fee_range",
        ),
    )
    op.create_index("ix_classrooms_user_id", "classrooms", ["user_id"])
    op.create_index("ix_classrooms_prefecture", "classrooms", ["prefecture"])
    op.create_index("ix_classrooms_published", "classrooms", ["published"])
    op.create_index("ix_classrooms_created_at", "classrooms", ["created_at"])

    op.create_table(
        "classroom_images",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "classroom_id",
            sa.Integer(),
            sa.ForeignKey("classrooms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("file_path", sa.String(length=255), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("content_type", sa.String(length=128), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_classroom_images_classroom_id", "classroom_images", ["classroom_id"])

    subscription_status = postgresql.ENUM(*SUBSCRIPTION_STATUSES, name="subscriptionstatus")
    subscription_status.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "subscriptions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE")),
        sa.Column(
            "status",
            postgresql.ENUM(*SUBSCRIPTION_STATUSES, name="subscriptionstatus", create_type=False),
            server_default="incomplete",
        ),
        sa.Column("current_period_start", sa.DateTime(timezone=True)),
        sa.Column("current_period_end", sa.DateTime(timezone=True)),
        sa.Column("plan_type", sa.String(length=32), server_default="monthly"),
        sa.Column("amount", sa.Integer(), server_default="0"),
        sa.Column("currency", sa.CHAR(length=3), server_default="jpy"),
        sa.Column("stripe_customer_id", sa.String(length=128)),
        sa.Column("stripe_subscription_id", sa.String(length=128), unique=True),
        sa.Column("stripe_payment_intent_id", sa.String(length=128)),
        sa.Column("trial_end", sa.DateTime(timezone=True)),
        sa.Column("canceled_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_subscriptions_user_id", "subscriptions", ["user_id"])
    op.create_index(
        "ix_subscriptions_current_period_end", "subscriptions", ["current_period_end"]
    )
    op.create_index(
        "ix_subscriptions_stripe_customer_id", "subscriptions", ["stripe_customer_id"]
    )

    payment_status = postgresql.ENUM("succeeded", "failed", "refunded", name="paymentstatus")
    payment_status.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "payment_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE")),
        sa.Column(
            "subscription_id",
            sa.Integer(),
            sa.ForeignKey("subscriptions.id", ondelete="SET NULL"),
        ),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("currency", sa.CHAR(length=3), server_default="jpy"),
        sa.Column(
            "status",
            postgresql.ENUM("succeeded", "failed", "refunded", name="paymentstatus", create_type=False),
            nullable=False,
        ),
        sa.Column("stripe_payment_intent_id", sa.String(length=128)),
        sa.Column("description", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_payment_history_user_id", "payment_history", ["user_id"])

    op.create_table(
        "processed_stripe_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("stripe_event_id", sa.String(length=128), nullable=False, unique=True),
        sa.Column("event_type", sa.String(length=128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "mail_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("to_email", sa.String(length=255), nullable=False),
        sa.Column("status", sa.Integer()),
        sa.Column("sender_email", sa.String(length=255)),
        sa.Column("classroom_name", sa.String(length=255)),
        sa.Column("response_text", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("mail_logs")
    op.drop_table("processed_stripe_events")
    op.drop_index("ix_payment_history_user_id", table_name="payment_history")
    op.drop_table("payment_history")
    op.drop_index("ix_subscriptions_stripe_customer_id", table_name="subscriptions")
    op.drop_index("ix_subscriptions_current_period_end", table_name="subscriptions")
    op.drop_index("ix_subscriptions_user_id", table_name="subscriptions")
    op.drop_table("subscriptions")
    op.drop_index("ix_classroom_images_classroom_id", table_name="classroom_images")
    op.drop_table("classroom_images")
    op.drop_index("ix_classrooms_created_at", table_name="classrooms")
    op.drop_index("ix_classrooms_published", table_name="classrooms")
    op.drop_index("ix_classrooms_prefecture", table_name="classrooms")
    op.drop_index("ix_classrooms_user_id", table_name="classrooms")
    op.drop_table("classrooms")
    op.drop_table("users")
    postgresql.ENUM(name="paymentstatus").drop(op.get_bind(), checkfirst=True)
    postgresql.ENUM(name="subscriptionstatus").drop(op.get_bind(), checkfirst=True)
