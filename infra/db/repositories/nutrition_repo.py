from __future__ import annotations

from datetime import date as Date, datetime
from typing import Any

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.calculations import day_bounds, sum_macros
from domain.errors import MealNotFoundError, NutritionNotFoundError
from infra.db.models import Meal, NutritionDay
from infra.db.repositories.base import as_utc, enum_value, iso, pick, utcnow


log = structlog.get_logger(__name__)

MEAL_FIELDS = {
    "type",
    "name",
    "ingredients",
    "calories",
    "protein",
    "fats",
    "carbs",
    "portion",
    "recipe",
    "eaten",
    "photo",
    "notes",
}


class NutritionRepo:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _get_owned(self, *, nutrition_id: int, user_id: int) -> NutritionDay | None:
        # владелец в том же запросе, что и поиск записи
        res = await self.session.execute(
            select(NutritionDay)
            .where(NutritionDay.id == nutrition_id, NutritionDay.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return res.scalar_one_or_none()

    async def get_for_day(self, *, user_id: int, on_date: Date | None = None) -> dict[str, Any] | None:
        stmt = select(NutritionDay).where(NutritionDay.user_id == user_id)
        if on_date is not None:
            start, end = day_bounds(on_date)
            stmt = stmt.where(NutritionDay.date >= start, NutritionDay.date < end)
        stmt = stmt.order_by(NutritionDay.date.desc(), NutritionDay.id.desc()).limit(1)
        res = await self.session.execute(stmt)
        n = res.scalar_one_or_none()
        return self._row_to_dict(n) if n else None

    async def get_by_id(self, *, nutrition_id: int, user_id: int) -> dict[str, Any] | None:
        n = await self._get_owned(nutrition_id=nutrition_id, user_id=user_id)
        return self._row_to_dict(n) if n else None

    async def create(
        self,
        *,
        user_id: int,
        telegram_id: int,
        meals: list[dict[str, Any]],
        at: datetime | None = None,
        water_goal: float | None = None,
        water_consumed: float | None = None,
        totals: dict[str, float | None] | None = None,
    ) -> dict[str, Any]:
        meal_rows = [Meal(**pick(m, MEAL_FIELDS)) for m in meals]
        # если итоги не переданы, считаем по приёмам пищи
        computed = sum_macros([pick(m, MEAL_FIELDS) for m in meals])
        for key, value in (totals or {}).items():
            if value is not None:
                computed[key] = value
        n = NutritionDay(
            user_id=user_id,
            telegram_id=telegram_id,
            date=as_utc(at),
            water_goal=2.5 if water_goal is None else water_goal,
            water_consumed=water_consumed or 0.0,
            total_calories=computed["calories"],
            total_protein=computed["protein"],
            total_fats=computed["fats"],
            total_carbs=computed["carbs"],
            meals=meal_rows,
        )
        self.session.add(n)
        await self.session.commit()
        await self.session.refresh(n, attribute_names=["meals"])
        return self._row_to_dict(n)

    async def update_meal(
        self,
        *,
        nutrition_id: int,
        meal_id: int,
        user_id: int,
        eaten: bool,
        notes: str | None,
        photo: str | None = None,
    ) -> dict[str, Any]:
        """Mark a meal inside an owned nutrition day.

        Raises NutritionNotFoundError when the day does not exist for this
        user and MealNotFoundError when the day exists but has no such meal.
        """
        n = await self._get_owned(nutrition_id=nutrition_id, user_id=user_id)
        if n is None:
            raise NutritionNotFoundError("Nutrition record not found")
        meal = next((m for m in n.meals if m.id == meal_id), None)
        if meal is None:
            raise MealNotFoundError("Meal not found")
        meal.eaten = eaten
        meal.eaten_at = utcnow()
        meal.notes = notes
        if photo:
            meal.photo = photo
        await self.session.commit()
        log.info("meal_marked", nutrition_id=nutrition_id, meal_id=meal_id, eaten=eaten)
        return self._row_to_dict(n)

    async def add_water(self, *, nutrition_id: int, user_id: int, amount: float) -> dict[str, Any]:
        # атомарный инкремент на стороне БД
        res = await self.session.execute(
            update(NutritionDay)
            .where(NutritionDay.id == nutrition_id, NutritionDay.user_id == user_id)
            .values(water_consumed=NutritionDay.water_consumed + amount)
            .returning(NutritionDay.id)
        )
        if res.first() is None:
            await self.session.rollback()
            raise NutritionNotFoundError("Nutrition record not found")
        await self.session.commit()
        log.info("water_added", nutrition_id=nutrition_id, amount=amount)
        n = await self._get_owned(nutrition_id=nutrition_id, user_id=user_id)
        return self._row_to_dict(n)

    def _row_to_dict(self, n: NutritionDay) -> dict[str, Any]:
        return {
            "id": n.id,
            "user_id": n.user_id,
            "telegram_id": n.telegram_id,
            "date": iso(n.date),
            "water": {"goal": n.water_goal, "consumed": n.water_consumed},
            "total_calories": n.total_calories,
            "total_protein": n.total_protein,
            "total_fats": n.total_fats,
            "total_carbs": n.total_carbs,
            "meals": [self._meal_to_dict(m) for m in n.meals],
        }

    @staticmethod
    def _meal_to_dict(m: Meal) -> dict[str, Any]:
        return {
            "id": m.id,
            "type": enum_value(m.type),
            "name": m.name,
            "ingredients": list(m.ingredients or []),
            "calories": m.calories,
            "protein": m.protein,
            "fats": m.fats,
            "carbs": m.carbs,
            "portion": m.portion,
            "recipe": m.recipe,
            "eaten": bool(m.eaten),
            "eaten_at": iso(m.eaten_at),
            "photo": m.photo,
            "notes": m.notes,
        }
