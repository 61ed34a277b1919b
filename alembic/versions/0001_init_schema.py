from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0001_init_schema"
down_revision = None
branch_labels = None
depends_on = None


JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _pk() -> sa.Column:
    return sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True)


def _owner() -> list[sa.Column]:
    return [
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("telegram_id", sa.BigInteger(), nullable=False),
    ]


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        _pk(),
        sa.Column("telegram_id", sa.BigInteger(), nullable=False),
        sa.Column("username", sa.String(length=255), nullable=True),
        sa.Column("first_name", sa.String(length=255), nullable=True),
        sa.Column("last_name", sa.String(length=255), nullable=True),
        sa.Column("trainer_id", sa.BigInteger(), nullable=True),
        *_timestamps(),
    )
    # уникальность telegram_id держит find-or-create при гонке первых запросов
    op.create_index("ix_users_telegram_id", "users", ["telegram_id"], unique=True)

    op.create_table(
        "profiles",
        _pk(),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("gender", sa.String(length=16), nullable=True),
        sa.Column("height", sa.Float(), nullable=True),
        sa.Column("current_weight", sa.Float(), nullable=True),
        sa.Column("target_weight", sa.Float(), nullable=True),
        sa.Column("goal", sa.String(length=64), nullable=True),
        sa.Column("level", sa.String(length=32), nullable=True),
        sa.Column("equipment", JSONType, nullable=False, server_default=sa.text("'[]'")),
        *_timestamps(),
        sa.UniqueConstraint("user_id", name="uq_profiles_user_id"),
    )

    op.create_table(
        "measurements",
        _pk(),
        *_owner(),
        sa.Column("date", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("chest", sa.Float(), nullable=True),
        sa.Column("waist", sa.Float(), nullable=True),
        sa.Column("hips", sa.Float(), nullable=True),
        sa.Column("bicep_left", sa.Float(), nullable=True),
        sa.Column("bicep_right", sa.Float(), nullable=True),
        sa.Column("thigh_left", sa.Float(), nullable=True),
        sa.Column("thigh_right", sa.Float(), nullable=True),
        sa.Column("calf_left", sa.Float(), nullable=True),
        sa.Column("calf_right", sa.Float(), nullable=True),
        sa.Column("photos", JSONType, nullable=False, server_default=sa.text("'[]'")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.CheckConstraint("weight IS NULL OR weight > 0", name="ck_measurements_weight_positive"),
    )
    op.create_index("ix_measurements_user_id", "measurements", ["user_id"])
    op.create_index("ix_measurements_user_date", "measurements", ["user_id", "date"])

    op.create_table(
        "nutrition_days",
        _pk(),
        *_owner(),
        sa.Column("date", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("water_goal", sa.Float(), nullable=False, server_default=sa.text("2.5")),
        sa.Column("water_consumed", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_calories", sa.Float(), nullable=True),
        sa.Column("total_protein", sa.Float(), nullable=True),
        sa.Column("total_fats", sa.Float(), nullable=True),
        sa.Column("total_carbs", sa.Float(), nullable=True),
    )
    op.create_index("ix_nutrition_days_user_id", "nutrition_days", ["user_id"])
    op.create_index("ix_nutrition_days_user_date", "nutrition_days", ["user_id", "date"])

    op.create_table(
        "meals",
        _pk(),
        sa.Column(
            "nutrition_id", sa.BigInteger(), sa.ForeignKey("nutrition_days.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("type", sa.String(length=9), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("ingredients", JSONType, nullable=False, server_default=sa.text("'[]'")),
        sa.Column("calories", sa.Float(), nullable=True),
        sa.Column("protein", sa.Float(), nullable=True),
        sa.Column("fats", sa.Float(), nullable=True),
        sa.Column("carbs", sa.Float(), nullable=True),
        sa.Column("portion", sa.String(length=128), nullable=True),
        sa.Column("recipe", sa.Text(), nullable=True),
        sa.Column("eaten", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("eaten_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("photo", sa.String(length=512), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    op.create_index("ix_meals_nutrition_id", "meals", ["nutrition_id"])

    op.create_table(
        "conditions",
        _pk(),
        *_owner(),
        sa.Column("date", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("sleep", JSONType, nullable=True),
        sa.Column("stress", JSONType, nullable=True),
        sa.Column("energy", JSONType, nullable=True),
        sa.Column("mood", sa.String(length=64), nullable=True),
        sa.Column("motivation", sa.String(length=16), nullable=True),
        sa.Column("pain", JSONType, nullable=True),
        sa.Column("heart_rate", sa.Integer(), nullable=True),
        sa.Column("blood_pressure", sa.String(length=16), nullable=True),
        sa.Column("menstrual_cycle", JSONType, nullable=True),
    )
    op.create_index("ix_conditions_user_id", "conditions", ["user_id"])
    op.create_index("ix_conditions_user_date", "conditions", ["user_id", "date"])

    op.create_table(
        "workouts",
        _pk(),
        *_owner(),
        sa.Column("date", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("program_name", sa.String(length=255), nullable=True),
        sa.Column("workout_name", sa.String(length=255), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("warmup", sa.Text(), nullable=True),
        sa.Column("cooldown", sa.Text(), nullable=True),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 10)", name="ck_workouts_rating_range"),
    )
    op.create_index("ix_workouts_user_id", "workouts", ["user_id"])
    op.create_index("ix_workouts_user_date", "workouts", ["user_id", "date"])

    op.create_table(
        "exercises",
        _pk(),
        sa.Column("workout_id", sa.BigInteger(), sa.ForeignKey("workouts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("sets", sa.Integer(), nullable=True),
        sa.Column("reps", sa.Integer(), nullable=True),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("rest_time", sa.Integer(), nullable=True),
        sa.Column("video_url", sa.String(length=512), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("user_video", sa.String(length=512), nullable=True),
        sa.Column("feeling", sa.String(length=16), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    op.create_index("ix_exercises_workout_id", "exercises", ["workout_id"])

    op.create_table(
        "messages",
        _pk(),
        *_owner(),
        sa.Column("trainer_id", sa.BigInteger(), nullable=True),
        sa.Column("sender", sa.String(length=7), nullable=False),
        sa.Column("message_type", sa.String(length=5), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("file_url", sa.String(length=512), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_messages_user_id", "messages", ["user_id"])
    op.create_index("ix_messages_user_timestamp", "messages", ["user_id", "timestamp"])


def downgrade() -> None:
    for table in ("messages", "exercises", "workouts", "conditions", "meals", "nutrition_days", "measurements", "profiles"):
        op.drop_table(table)
    op.drop_index("ix_users_telegram_id", table_name="users")
    op.drop_table("users")
