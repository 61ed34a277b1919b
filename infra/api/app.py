from __future__ import annotations

import hashlib
import hmac
import json as _json
import time
import uuid as _uuid
from datetime import date as D, datetime, timezone
from pathlib import Path
from urllib.parse import parse_qsl

import structlog
from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from domain.entities import Identity, User
from domain.errors import (
    ConfigurationError,
    DomainError,
    ExerciseNotFoundError,
    InvalidInputError,
    MealNotFoundError,
    NutritionNotFoundError,
    UnauthenticatedError,
    WorkoutNotFoundError,
)
from domain.identity import MAX_TELEGRAM_ID, identity_headers
from domain.use_cases import ProgressStatsInput, collect_progress_stats
from infra.api.deps import current_user
from infra.api.schemas import (
    APIResponse,
    Circumferences,
    ConditionCreate,
    MessageCreate,
    NutritionCreate,
    UserUpdate,
    WaterIncrement,
    WebAppVerifyInput,
    WorkoutComplete,
    WorkoutCreate,
)
from infra.db.repositories.condition_repo import ConditionRepo
from infra.db.repositories.measurement_repo import MeasurementRepo
from infra.db.repositories.message_repo import MessageRepo
from infra.db.repositories.nutrition_repo import NutritionRepo
from infra.db.repositories.profile_repo import ProfileRepo
from infra.db.repositories.user_repo import UserRepo
from infra.db.repositories.workout_repo import WorkoutRepo
from infra.db.session import get_session
from infra.storage.object_storage import PUBLIC_PREFIX, UploadStorage


MAX_MEASUREMENT_PHOTOS = 3


def _form_flag(value: str | None) -> bool:
    # multipart-поля приходят строками: только "true" считается истиной
    return value == "true"


def _parse_day(value: str) -> D:
    try:
        return D.fromisoformat(value[:10])
    except ValueError as e:
        raise InvalidInputError(f"Invalid date: {value}") from e


def create_app(storage: UploadStorage | None = None) -> FastAPI:
    app = FastAPI(title="Fitness Pro API", version="0.1.0")
    log = structlog.get_logger("api")
    uploads = storage or UploadStorage()

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins.split(","),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.mount(PUBLIC_PREFIX, StaticFiles(directory=uploads.base_dir), name="uploads")

    # Serve built WebApp if present
    project_root = Path(__file__).resolve().parents[2]
    webapp_dist = project_root / "public"
    if webapp_dist.exists():
        app.mount("/webapp", StaticFiles(directory=str(webapp_dist), html=True), name="webapp")

    @app.middleware("http")
    async def trace_requests(request: Request, call_next):
        trace_id = request.headers.get("X-Trace-Id") or _uuid.uuid4().hex[:12]
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(trace_id=trace_id)
        started = time.perf_counter()
        response = await call_next(request)
        took_ms = int((time.perf_counter() - started) * 1000)
        log.info(
            "request_done",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            took_ms=took_ms,
        )
        response.headers["X-Trace-Id"] = trace_id
        return response

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
        body = APIResponse(ok=False, error={"code": exc.code, "message": exc.message})
        return JSONResponse(status_code=exc.status, content=body.model_dump())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        body = APIResponse(
            ok=False,
            error={
                "code": InvalidInputError.code,
                "message": "Invalid request",
                "details": jsonable_encoder(exc.errors()),
            },
        )
        return JSONResponse(status_code=InvalidInputError.status, content=body.model_dump())

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        log.error("storage_error", path=request.url.path, error=str(exc), exc_info=exc)
        body = APIResponse(ok=False, error={"code": "E_STORAGE_UNAVAILABLE", "message": "Storage error"})
        return JSONResponse(status_code=500, content=body.model_dump())

    async def _save_upload(file: UploadFile | None) -> str | None:
        if file is None or not file.filename:
            return None
        data = await file.read()
        return uploads.put_bytes(data, file.filename)

    @app.get("/api/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    # User
    @app.get("/api/user", response_model=APIResponse)
    async def get_user(user: User = Depends(current_user), session: AsyncSession = Depends(get_session)) -> APIResponse:
        profile = await ProfileRepo(session).get_by_user_id(user.id)
        return APIResponse(ok=True, data={**UserRepo.to_dict(user), "profile": profile})

    @app.put("/api/user", response_model=APIResponse)
    async def update_user(
        payload: UserUpdate,
        user: User = Depends(current_user),
        session: AsyncSession = Depends(get_session),
    ) -> APIResponse:
        users = UserRepo(session)
        profiles = ProfileRepo(session)
        await users.update_user(user_id=user.id, data=payload.model_dump(exclude_unset=True, exclude={"profile"}))
        if payload.profile is not None:
            await profiles.upsert_profile(user_id=user.id, data=payload.profile.model_dump(exclude_unset=True))
        fresh = await users.get_by_id(user.id)
        profile = await profiles.get_by_user_id(user.id)
        return APIResponse(ok=True, data={**UserRepo.to_dict(fresh or user), "profile": profile})

    # Measurements
    @app.get("/api/measurements", response_model=APIResponse)
    async def list_measurements(user: User = Depends(current_user), session: AsyncSession = Depends(get_session)) -> APIResponse:
        items = await MeasurementRepo(session).list_recent(user_id=user.id, limit=30)
        return APIResponse(ok=True, data={"items": items})

    @app.get("/api/measurements/latest", response_model=APIResponse)
    async def latest_measurement(user: User = Depends(current_user), session: AsyncSession = Depends(get_session)) -> APIResponse:
        item = await MeasurementRepo(session).get_latest(user_id=user.id)
        return APIResponse(ok=True, data=item)

    @app.post("/api/measurements", response_model=APIResponse)
    async def create_measurement(
        weight: float | None = Form(None, gt=0),
        measurements: str | None = Form(None),
        notes: str | None = Form(None),
        photos: list[UploadFile] | None = File(None),
        user: User = Depends(current_user),
        session: AsyncSession = Depends(get_session),
    ) -> APIResponse:
        try:
            circ = Circumferences.model_validate_json(measurements or "{}")
        except ValidationError as e:
            raise InvalidInputError("Invalid measurements payload") from e
        files = [p for p in (photos or []) if p.filename]
        if len(files) > MAX_MEASUREMENT_PHOTOS:
            raise InvalidInputError(f"At most {MAX_MEASUREMENT_PHOTOS} photos allowed")
        refs = [await _save_upload(p) for p in files]
        repo = MeasurementRepo(session)
        item = await repo.create(
            user_id=user.id,
            telegram_id=user.telegram_id,
            weight=weight,
            measurements=circ.model_dump(exclude_none=True),
            notes=notes,
            photos=[r for r in refs if r],
            autocommit=False,
        )
        # текущий вес в профиле следует за последним замером
        if weight is not None:
            await ProfileRepo(session).set_current_weight(user_id=user.id, weight=weight, autocommit=False)
        await session.commit()
        return APIResponse(ok=True, data=item)

    # Nutrition
    @app.get("/api/nutrition", response_model=APIResponse)
    async def get_nutrition(
        date: str | None = None,
        user: User = Depends(current_user),
        session: AsyncSession = Depends(get_session),
    ) -> APIResponse:
        on_date = _parse_day(date) if date else None
        item = await NutritionRepo(session).get_for_day(user_id=user.id, on_date=on_date)
        return APIResponse(ok=True, data=item)

    @app.post("/api/nutrition", response_model=APIResponse)
    async def create_nutrition(
        payload: NutritionCreate,
        user: User = Depends(current_user),
        session: AsyncSession = Depends(get_session),
    ) -> APIResponse:
        water = payload.water
        item = await NutritionRepo(session).create(
            user_id=user.id,
            telegram_id=user.telegram_id,
            meals=[m.model_dump() for m in payload.meals],
            at=payload.date,
            water_goal=water.goal if water else None,
            water_consumed=water.consumed if water else None,
            totals={
                "calories": payload.total_calories,
                "protein": payload.total_protein,
                "fats": payload.total_fats,
                "carbs": payload.total_carbs,
            },
        )
        return APIResponse(ok=True, data=item)

    @app.put("/api/nutrition/{nutrition_id}/meal/{meal_id}", response_model=APIResponse)
    async def mark_meal(
        nutrition_id: int,
        meal_id: int,
        eaten: str | None = Form(None),
        notes: str | None = Form(None),
        photo: UploadFile | None = File(None),
        user: User = Depends(current_user),
        session: AsyncSession = Depends(get_session),
    ) -> APIResponse:
        repo = NutritionRepo(session)
        # сначала проверяем владельца и приём пищи, затем пишем файл
        day = await repo.get_by_id(nutrition_id=nutrition_id, user_id=user.id)
        if day is None:
            raise NutritionNotFoundError("Nutrition record not found")
        if not any(m["id"] == meal_id for m in day["meals"]):
            raise MealNotFoundError("Meal not found")
        ref = await _save_upload(photo)
        item = await repo.update_meal(
            nutrition_id=nutrition_id,
            meal_id=meal_id,
            user_id=user.id,
            eaten=_form_flag(eaten),
            notes=notes,
            photo=ref,
        )
        return APIResponse(ok=True, data=item)

    @app.put("/api/nutrition/{nutrition_id}/water", response_model=APIResponse)
    async def add_water(
        nutrition_id: int,
        payload: WaterIncrement,
        user: User = Depends(current_user),
        session: AsyncSession = Depends(get_session),
    ) -> APIResponse:
        item = await NutritionRepo(session).add_water(nutrition_id=nutrition_id, user_id=user.id, amount=payload.amount)
        return APIResponse(ok=True, data=item)

    # Conditions
    @app.get("/api/conditions", response_model=APIResponse)
    async def list_conditions(user: User = Depends(current_user), session: AsyncSession = Depends(get_session)) -> APIResponse:
        items = await ConditionRepo(session).list_recent(user_id=user.id, limit=30)
        return APIResponse(ok=True, data={"items": items})

    @app.get("/api/conditions/latest", response_model=APIResponse)
    async def latest_condition(user: User = Depends(current_user), session: AsyncSession = Depends(get_session)) -> APIResponse:
        item = await ConditionRepo(session).get_latest(user_id=user.id)
        return APIResponse(ok=True, data=item)

    @app.post("/api/conditions", response_model=APIResponse)
    async def create_condition(
        payload: ConditionCreate,
        user: User = Depends(current_user),
        session: AsyncSession = Depends(get_session),
    ) -> APIResponse:
        item = await ConditionRepo(session).create(
            user_id=user.id,
            telegram_id=user.telegram_id,
            data=payload.model_dump(exclude={"date"}, exclude_none=True),
            at=payload.date,
        )
        return APIResponse(ok=True, data=item)

    # Workouts
    @app.get("/api/workouts", response_model=APIResponse)
    async def list_workouts(user: User = Depends(current_user), session: AsyncSession = Depends(get_session)) -> APIResponse:
        items = await WorkoutRepo(session).list_recent(user_id=user.id, limit=30)
        return APIResponse(ok=True, data={"items": items})

    @app.get("/api/workouts/today", response_model=APIResponse)
    async def today_workout(user: User = Depends(current_user), session: AsyncSession = Depends(get_session)) -> APIResponse:
        today = datetime.now(timezone.utc).date()
        item = await WorkoutRepo(session).get_for_day(user_id=user.id, on_date=today)
        return APIResponse(ok=True, data=item)

    @app.post("/api/workouts", response_model=APIResponse)
    async def create_workout(
        payload: WorkoutCreate,
        user: User = Depends(current_user),
        session: AsyncSession = Depends(get_session),
    ) -> APIResponse:
        item = await WorkoutRepo(session).create(
            user_id=user.id,
            telegram_id=user.telegram_id,
            data=payload.model_dump(exclude={"date", "exercises"}),
            exercises=[e.model_dump() for e in payload.exercises],
            at=payload.date,
        )
        return APIResponse(ok=True, data=item)

    @app.put("/api/workouts/{workout_id}/exercise/{exercise_id}", response_model=APIResponse)
    async def update_exercise(
        workout_id: int,
        exercise_id: int,
        completed: str | None = Form(None),
        feeling: str | None = Form(None),
        notes: str | None = Form(None),
        video: UploadFile | None = File(None),
        user: User = Depends(current_user),
        session: AsyncSession = Depends(get_session),
    ) -> APIResponse:
        if feeling is not None and feeling not in {"easy", "normal", "hard"}:
            raise InvalidInputError("feeling must be one of: easy, normal, hard")
        repo = WorkoutRepo(session)
        workout = await repo.get_by_id(workout_id=workout_id, user_id=user.id)
        if workout is None:
            raise WorkoutNotFoundError("Workout not found")
        if not any(e["id"] == exercise_id for e in workout["exercises"]):
            raise ExerciseNotFoundError("Exercise not found")
        ref = await _save_upload(video)
        item = await repo.update_exercise(
            workout_id=workout_id,
            exercise_id=exercise_id,
            user_id=user.id,
            completed=_form_flag(completed),
            feeling=feeling,
            notes=notes,
            user_video=ref,
        )
        return APIResponse(ok=True, data=item)

    @app.put("/api/workouts/{workout_id}/complete", response_model=APIResponse)
    async def complete_workout(
        workout_id: int,
        payload: WorkoutComplete,
        user: User = Depends(current_user),
        session: AsyncSession = Depends(get_session),
    ) -> APIResponse:
        item = await WorkoutRepo(session).complete(
            workout_id=workout_id, user_id=user.id, rating=payload.rating, notes=payload.notes
        )
        return APIResponse(ok=True, data=item)

    # Chat
    @app.get("/api/messages", response_model=APIResponse)
    async def list_messages(user: User = Depends(current_user), session: AsyncSession = Depends(get_session)) -> APIResponse:
        items = await MessageRepo(session).list_recent(user_id=user.id, limit=50)
        return APIResponse(ok=True, data={"items": items})

    @app.post("/api/messages", response_model=APIResponse)
    async def send_message(
        request: Request,
        user: User = Depends(current_user),
        session: AsyncSession = Depends(get_session),
    ) -> APIResponse:
        # JSON для текста, multipart когда есть вложение
        ctype = (request.headers.get("content-type") or "").lower()
        file_ref: str | None = None
        try:
            if ctype.startswith("application/json"):
                payload = MessageCreate.model_validate(await request.json())
            else:
                form = await request.form()
                payload = MessageCreate.model_validate(
                    {
                        "content": form.get("content"),
                        "messageType": form.get("messageType") or form.get("message_type") or "text",
                    }
                )
                upload = form.get("file")
                if upload is not None and not isinstance(upload, str):
                    file_ref = await _save_upload(upload)
        except (ValidationError, ValueError) as e:
            raise InvalidInputError("Invalid message payload") from e
        item = await MessageRepo(session).create(
            user_id=user.id,
            telegram_id=user.telegram_id,
            trainer_id=user.trainer_id,
            message_type=payload.message_type,
            content=payload.content,
            file_url=file_ref,
        )
        return APIResponse(ok=True, data=item)

    # Statistics
    @app.get("/api/stats", response_model=APIResponse)
    async def stats(user: User = Depends(current_user), session: AsyncSession = Depends(get_session)) -> APIResponse:
        out = await collect_progress_stats(
            WorkoutRepo(session),
            MeasurementRepo(session),
            ConditionRepo(session),
            ProgressStatsInput(user_id=user.id),
        )
        return APIResponse(
            ok=True,
            data={
                "workout_count": out.workout_count,
                "measurements": out.measurements,
                "conditions": out.conditions,
                "weight_progress": out.weight_progress,
            },
        )

    # Telegram WebApp launch payload
    @app.post("/api/webapp/verify", response_model=APIResponse)
    async def webapp_verify(payload: WebAppVerifyInput, session: AsyncSession = Depends(get_session)) -> APIResponse:
        if not settings.telegram_bot_token:
            raise ConfigurationError("Bot token is not configured")
        if not verify_init_data(payload.init_data, settings.telegram_bot_token):
            raise UnauthenticatedError("Invalid initData")
        identity = identity_from_init_data(payload.init_data)
        if identity is None:
            raise UnauthenticatedError("No user in initData")
        user = await UserRepo(session).get_or_create(identity)
        return APIResponse(ok=True, data={"user": UserRepo.to_dict(user), "headers": identity_headers(identity)})

    return app


def verify_init_data(init_data: str, bot_token: str) -> bool:
    try:
        params = dict(parse_qsl(init_data, keep_blank_values=True))
        hash_value = params.pop("hash", None)
        if not hash_value:
            return False
        data_check_string = "\n".join(f"{k}={v}" for k, v in sorted(params.items()))
        secret_key = hmac.new("WebAppData".encode(), bot_token.encode(), hashlib.sha256).digest()
        h = hmac.new(secret_key, data_check_string.encode(), hashlib.sha256).hexdigest()
        return hmac.compare_digest(h, hash_value)
    except ValueError:
        return False


def identity_from_init_data(init_data: str) -> Identity | None:
    params = dict(parse_qsl(init_data, keep_blank_values=True))
    try:
        user = _json.loads(params.get("user") or "{}")
    except ValueError:
        return None
    if not isinstance(user, dict):
        return None
    tid = user.get("id")
    if not isinstance(tid, int) or isinstance(tid, bool) or not 0 < tid <= MAX_TELEGRAM_ID:
        return None
    return Identity(
        telegram_id=tid,
        username=user.get("username") or None,
        first_name=user.get("first_name") or None,
        last_name=user.get("last_name") or None,
    )


app = create_app()
