from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from domain.entities import MealType, MessageType


class APIResponse(BaseModel):
    ok: bool = True
    data: dict | list | None = None
    error: dict | None = None


class ProfileDTO(BaseModel):
    age: int | None = Field(None, ge=5, le=120, examples=[30])
    gender: Literal["male", "female", "other"] | None = None
    height: float | None = Field(None, gt=0, examples=[180])
    current_weight: float | None = Field(None, gt=0, examples=[80])
    target_weight: float | None = Field(None, gt=0, examples=[75])
    goal: str | None = None
    level: Literal["beginner", "intermediate", "advanced"] | None = None
    equipment: list[str] | None = None


class UserUpdate(BaseModel):
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    trainer_id: int | None = Field(None, gt=0)
    profile: ProfileDTO | None = None


class Circumferences(BaseModel):
    # веб-клиент шлёт camelCase (bicepLeft), принимаем оба варианта
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    chest: float | None = Field(None, gt=0)
    waist: float | None = Field(None, gt=0)
    hips: float | None = Field(None, gt=0)
    bicep_left: float | None = Field(None, gt=0)
    bicep_right: float | None = Field(None, gt=0)
    thigh_left: float | None = Field(None, gt=0)
    thigh_right: float | None = Field(None, gt=0)
    calf_left: float | None = Field(None, gt=0)
    calf_right: float | None = Field(None, gt=0)


class MealIn(BaseModel):
    type: MealType | None = None
    name: str | None = None
    ingredients: list[str] = Field(default_factory=list)
    calories: float | None = Field(None, ge=0)
    protein: float | None = Field(None, ge=0)
    fats: float | None = Field(None, ge=0)
    carbs: float | None = Field(None, ge=0)
    portion: str | None = None
    recipe: str | None = None
    eaten: bool = False
    notes: str | None = None


class WaterIn(BaseModel):
    goal: float | None = Field(None, ge=0)
    consumed: float | None = Field(None, ge=0)


class NutritionCreate(BaseModel):
    date: datetime | None = None
    meals: list[MealIn] = Field(default_factory=list)
    water: WaterIn | None = None
    total_calories: float | None = Field(None, ge=0)
    total_protein: float | None = Field(None, ge=0)
    total_fats: float | None = Field(None, ge=0)
    total_carbs: float | None = Field(None, ge=0)


class WaterIncrement(BaseModel):
    amount: float = Field(..., allow_inf_nan=False, examples=[0.25])


class SleepIn(BaseModel):
    duration: float | None = Field(None, ge=0, le=24)
    quality: int | None = Field(None, ge=1, le=10)
    bed_time: str | None = None
    wake_time: str | None = None


class StressIn(BaseModel):
    level: int | None = Field(None, ge=1, le=10)
    sources: list[str] = Field(default_factory=list)
    notes: str | None = None


class EnergyIn(BaseModel):
    physical: int | None = Field(None, ge=1, le=10)
    mental: int | None = Field(None, ge=1, le=10)


class PainIn(BaseModel):
    areas: list[str] = Field(default_factory=list)
    severity: int | None = Field(None, ge=1, le=10)


class MenstrualCycleIn(BaseModel):
    phase: str | None = None
    symptoms: list[str] = Field(default_factory=list)


class ConditionCreate(BaseModel):
    date: datetime | None = None
    sleep: SleepIn | None = None
    stress: StressIn | None = None
    energy: EnergyIn | None = None
    mood: str | None = None
    motivation: Literal["low", "medium", "high"] | None = None
    pain: PainIn | None = None
    heart_rate: int | None = Field(None, gt=0, lt=300)
    blood_pressure: str | None = Field(None, max_length=16, examples=["120/80"])
    menstrual_cycle: MenstrualCycleIn | None = None


class ExerciseIn(BaseModel):
    name: str = Field(..., min_length=1)
    sets: int | None = Field(None, ge=0)
    reps: int | None = Field(None, ge=0)
    weight: float | None = Field(None, ge=0)
    rest_time: int | None = Field(None, ge=0)
    video_url: str | None = None
    description: str | None = None
    completed: bool = False
    feeling: Literal["easy", "normal", "hard"] | None = None
    notes: str | None = None


class WorkoutCreate(BaseModel):
    date: datetime | None = None
    program_name: str | None = None
    workout_name: str | None = None
    duration: int | None = Field(None, ge=0)
    warmup: str | None = None
    cooldown: str | None = None
    notes: str | None = None
    exercises: list[ExerciseIn] = Field(default_factory=list)


class WorkoutComplete(BaseModel):
    rating: int | None = Field(None, ge=1, le=10)
    notes: str | None = None


class WebAppVerifyInput(BaseModel):
    init_data: str = Field(..., min_length=1, alias="initData")


class MessageCreate(BaseModel):
    content: str | None = None
    message_type: MessageType = Field("text", alias="messageType")

    model_config = ConfigDict(populate_by_name=True)
