from __future__ import annotations

from datetime import datetime
from enum import Enum as PyEnum
from typing import Any, Optional

import sqlalchemy as sa
from sqlalchemy import (
    BigInteger,
    String,
    Text,
    Integer,
    Float,
    Boolean,
    DateTime,
    ForeignKey,
    func,
    MetaData,
    Enum as SAEnum,
    CheckConstraint,
    Index,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# JSONB on Postgres, plain JSON elsewhere (sqlite in tests)
JSONType = sa.JSON().with_variant(JSONB(), "postgresql")


metadata_obj = MetaData(naming_convention=NAMING_CONVENTION)


class Base(DeclarativeBase):
    metadata = metadata_obj


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    telegram_id: Mapped[int] = mapped_column(BigInteger, unique=True, index=True)
    username: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    trainer_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    profile: Mapped[Optional["Profile"]] = relationship(back_populates="user", uselist=False)


class Profile(Base, TimestampMixin):
    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True)
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    height: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    current_weight: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    target_weight: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    goal: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    level: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    equipment: Mapped[list[str]] = mapped_column(JSONType, default=list)

    user: Mapped[User] = relationship(back_populates="profile")


class OwnedMixin:
    """Owner stamp carried by every per-user record."""

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    telegram_id: Mapped[int] = mapped_column(BigInteger)


class Measurement(Base, OwnedMixin):
    __tablename__ = "measurements"
    __table_args__ = (
        CheckConstraint("weight IS NULL OR weight > 0", name="weight_positive"),
        Index("ix_measurements_user_date", "user_id", "date"),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    weight: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    chest: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    waist: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    hips: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    bicep_left: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    bicep_right: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    thigh_left: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    thigh_right: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    calf_left: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    calf_right: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    photos: Mapped[list[str]] = mapped_column(JSONType, default=list)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class MealTypeEnum(PyEnum):
    breakfast = "breakfast"
    lunch = "lunch"
    dinner = "dinner"
    snack = "snack"


class NutritionDay(Base, OwnedMixin):
    __tablename__ = "nutrition_days"
    __table_args__ = (Index("ix_nutrition_days_user_date", "user_id", "date"),)

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    water_goal: Mapped[float] = mapped_column(Float, default=2.5, server_default=sa.text("2.5"))
    water_consumed: Mapped[float] = mapped_column(Float, default=0.0, server_default=sa.text("0"))
    total_calories: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    total_protein: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    total_fats: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    total_carbs: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    meals: Mapped[list["Meal"]] = relationship(
        back_populates="nutrition", cascade="all, delete-orphan", order_by="Meal.id", lazy="selectin"
    )


class Meal(Base):
    __tablename__ = "meals"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    nutrition_id: Mapped[int] = mapped_column(ForeignKey("nutrition_days.id", ondelete="CASCADE"), index=True)
    type: Mapped[Optional[str]] = mapped_column(SAEnum(MealTypeEnum, name="meal_type", native_enum=False), nullable=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    ingredients: Mapped[list[str]] = mapped_column(JSONType, default=list)
    calories: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    protein: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    fats: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    carbs: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    portion: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    recipe: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    eaten: Mapped[bool] = mapped_column(Boolean, default=False, server_default=sa.false())
    eaten_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    photo: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    nutrition: Mapped[NutritionDay] = relationship(back_populates="meals")


class Condition(Base, OwnedMixin):
    __tablename__ = "conditions"
    __table_args__ = (Index("ix_conditions_user_date", "user_id", "date"),)

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    sleep: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)  # duration, quality, bedTime, wakeTime
    stress: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)  # level, sources, notes
    energy: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)  # physical, mental
    mood: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    motivation: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)  # low|medium|high
    pain: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)  # areas, severity
    heart_rate: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    blood_pressure: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    menstrual_cycle: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)  # phase, symptoms


class Workout(Base, OwnedMixin):
    __tablename__ = "workouts"
    __table_args__ = (
        Index("ix_workouts_user_date", "user_id", "date"),
        CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 10)", name="rating_range"),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    program_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    workout_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # minutes
    warmup: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cooldown: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, server_default=sa.false())
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    exercises: Mapped[list["Exercise"]] = relationship(
        back_populates="workout", cascade="all, delete-orphan", order_by="Exercise.id", lazy="selectin"
    )


class Exercise(Base):
    __tablename__ = "exercises"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    workout_id: Mapped[int] = mapped_column(ForeignKey("workouts.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255))
    sets: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    reps: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    weight: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    rest_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # seconds
    video_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, server_default=sa.false())
    user_video: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    feeling: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)  # easy|normal|hard
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    workout: Mapped[Workout] = relationship(back_populates="exercises")


class SenderEnum(PyEnum):
    user = "user"
    trainer = "trainer"


class MessageTypeEnum(PyEnum):
    text = "text"
    photo = "photo"
    video = "video"
    voice = "voice"
    file = "file"


class Message(Base, OwnedMixin):
    __tablename__ = "messages"
    __table_args__ = (Index("ix_messages_user_timestamp", "user_id", "timestamp"),)

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    trainer_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    sender: Mapped[str] = mapped_column(SAEnum(SenderEnum, name="message_sender", native_enum=False))
    message_type: Mapped[str] = mapped_column(SAEnum(MessageTypeEnum, name="message_type", native_enum=False))
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    file_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    read: Mapped[bool] = mapped_column(Boolean, default=False, server_default=sa.false())
