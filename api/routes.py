# Backend API routes

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import ADMIN_TELEGRAM_IDS
from core import (
    AuthorizationError,
    ResolvedLink,
    add_dimension,
    add_sample,
    build_link_url,
    edit_dimension,
    edit_sample,
    edit_tasting,
    export_tasting_csv,
    get_tasting_or_404,
    get_tasting_summary,
    get_user_profile,
    issue_link,
    resolve_link,
    submit_rating,
)
from database import (
    AsyncSessionLocal,
    create_tasting,
    get_all_tastings,
    get_db,
    get_tasting_ratings,
    upsert_user,
)
from schemas import (
    AuthLinkRequest,
    AuthLinkResponse,
    LinkUser,
    RatingCreate,
    RatingDimensionCreate,
    RatingDimensionOut,
    RatingDimensionUpdate,
    RatingOut,
    ResolveResponse,
    StatusResponse,
    TastingCreate,
    TastingDetail,
    TastingOut,
    TastingUpdate,
    TeaSampleCreate,
    TeaSampleOut,
    TeaSampleUpdate,
    TelegramRegisterRequest,
)
from utils.metrics import get_metrics, get_metrics_content_type

from .auth import require_admin, require_bot_secret, require_rating_link, require_result_link

logger = logging.getLogger(__name__)

router = APIRouter()


# ═══════════════════════════════════════════════════════════════════
# Health Check (публичный эндпоинт для мониторинга)
# ═══════════════════════════════════════════════════════════════════

_start_time = datetime.now()


@router.get("/health", response_class=JSONResponse)
async def health_check():
    """
    Liveness probe + проверка подключения к БД.
    Не требует авторизации.
    """
    db_status = "ok"
    db_error = None
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "error"
        db_error = str(e)

    uptime = datetime.now() - _start_time
    status = "healthy" if db_status == "ok" else "unhealthy"

    response = {
        "status": status,
        "timestamp": datetime.now().isoformat(),
        "uptime": str(uptime).split('.')[0],
        "components": {
            "database": {
                "status": db_status,
                "error": db_error,
            }
        }
    }

    return JSONResponse(content=response, status_code=200 if status == "healthy" else 503)


@router.get("/metrics")
async def prometheus_metrics():
    """Prometheus metrics (без авторизации для scraping)."""
    return Response(content=get_metrics(), media_type=get_metrics_content_type())


# ═══════════════════════════════════════════════════════════════════
# Бот: регистрация и выдача ссылок
# ═══════════════════════════════════════════════════════════════════

@router.post(
    "/api/telegram/register",
    response_model=StatusResponse,
    dependencies=[Depends(require_bot_secret)],
)
async def register_telegram_user(
    payload: TelegramRegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """Создать пользователя при первом обращении к боту или обновить его данные."""
    await upsert_user(
        db,
        telegram_id=payload.telegram_id,
        username=payload.username,
        full_name=payload.full_name,
        make_admin=payload.telegram_id in ADMIN_TELEGRAM_IDS,
    )
    return StatusResponse(status="ok")


@router.post(
    "/api/auth/link",
    response_model=AuthLinkResponse,
    dependencies=[Depends(require_bot_secret)],
)
async def create_auth_link(
    payload: AuthLinkRequest,
    db: AsyncSession = Depends(get_db),
):
    """Выдать ссылку на страницу фронтенда."""
    link = await issue_link(db, payload.telegram_id, payload.purpose, payload.context)
    return AuthLinkResponse(url=build_link_url(link))


@router.get("/api/auth/resolve", response_model=ResolveResponse)
async def resolve_auth_link(
    token: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    """Разрешить токен из ссылки: пользователь, цель и контекст."""
    resolved = await resolve_link(db, token)
    return ResolveResponse(
        user=LinkUser(id=resolved.user.id, name=resolved.user.display_name),
        purpose=resolved.purpose,
        context=resolved.context,
    )


# ═══════════════════════════════════════════════════════════════════
# Дегустации
# ═══════════════════════════════════════════════════════════════════

@router.get("/api/tastings", response_model=list[TastingOut])
async def list_tastings(
    active: bool = Query(False, description="Только активные"),
    db: AsyncSession = Depends(get_db),
):
    return await get_all_tastings(db, only_active=active)


@router.get("/api/tastings/{tasting_id}", response_model=TastingDetail)
async def get_tasting_detail(tasting_id: int, db: AsyncSession = Depends(get_db)):
    return await get_tasting_or_404(db, tasting_id)


@router.post("/api/tastings", response_model=TastingDetail, status_code=201)
async def create_tasting_route(
    payload: TastingCreate,
    admin: ResolvedLink = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    tasting = await create_tasting(
        db,
        title=payload.title,
        description=payload.description,
        scheduled_at=payload.scheduled_at,
        created_by_id=admin.user.id,
    )
    logger.info(f"Tasting {tasting.id} created by user {admin.user.id}")
    return tasting


@router.patch("/api/tastings/{tasting_id}", response_model=TastingDetail)
async def update_tasting_route(
    tasting_id: int,
    payload: TastingUpdate,
    admin: ResolvedLink = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await edit_tasting(db, tasting_id, payload.model_dump(exclude_unset=True, exclude_none=True))


@router.post(
    "/api/tastings/{tasting_id}/samples",
    response_model=TeaSampleOut,
    status_code=201,
)
async def create_sample_route(
    tasting_id: int,
    payload: TeaSampleCreate,
    admin: ResolvedLink = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await add_sample(
        db,
        tasting_id=tasting_id,
        name=payload.name,
        description=payload.description,
        position=payload.position,
    )


@router.patch("/api/samples/{sample_id}", response_model=TeaSampleOut)
async def update_sample_route(
    sample_id: int,
    payload: TeaSampleUpdate,
    admin: ResolvedLink = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await edit_sample(db, sample_id, payload.model_dump(exclude_unset=True, exclude_none=True))


@router.post(
    "/api/tastings/{tasting_id}/dimensions",
    response_model=RatingDimensionOut,
    status_code=201,
)
async def create_dimension_route(
    tasting_id: int,
    payload: RatingDimensionCreate,
    admin: ResolvedLink = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await add_dimension(
        db,
        tasting_id=tasting_id,
        code=payload.code,
        name=payload.name,
        min_value=payload.min_value,
        max_value=payload.max_value,
        position=payload.position,
    )


@router.patch("/api/dimensions/{dimension_id}", response_model=RatingDimensionOut)
async def update_dimension_route(
    dimension_id: int,
    payload: RatingDimensionUpdate,
    admin: ResolvedLink = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await edit_dimension(db, dimension_id, payload.model_dump(exclude_unset=True, exclude_none=True))


# ═══════════════════════════════════════════════════════════════════
# Оценки и отчёты
# ═══════════════════════════════════════════════════════════════════

@router.post("/api/ratings", response_model=RatingOut)
async def submit_rating_route(
    payload: RatingCreate,
    link: ResolvedLink = Depends(require_rating_link),
    db: AsyncSession = Depends(get_db),
):
    """Сохранить оценку. Повторная отправка для того же образца заменяет оценку."""
    if link.user.id != payload.user_id:
        raise AuthorizationError("Токен выдан другому пользователю")

    return await submit_rating(
        db,
        user_id=payload.user_id,
        tea_sample_id=payload.tea_sample_id,
        data=payload.data,
        comment=payload.comment,
        tasting_id=link.context.get("tasting_id"),
    )


@router.get("/api/tastings/{tasting_id}/summary")
async def tasting_summary(tasting_id: int, db: AsyncSession = Depends(get_db)):
    """Средние по образцам и осям + текстовая сводка."""
    return await get_tasting_summary(db, tasting_id)


@router.get("/api/users/{user_id}/tastings/{tasting_id}/profile")
async def user_profile(
    user_id: int,
    tasting_id: int,
    link: ResolvedLink = Depends(require_result_link),
    db: AsyncSession = Depends(get_db),
):
    """Вкусовой профиль участника (данные для радар-диаграммы). Только по своей ссылке."""
    if link.user.id != user_id:
        raise AuthorizationError("Токен выдан другому пользователю")

    return await get_user_profile(db, user_id, tasting_id)


@router.get("/api/tastings/{tasting_id}/export.csv")
async def export_tasting(
    tasting_id: int,
    admin: ResolvedLink = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Выгрузка всех оценок дегустации в CSV."""
    tasting = await get_tasting_or_404(db, tasting_id)
    ratings = await get_tasting_ratings(db, tasting_id)

    logger.info(f"CSV export of tasting {tasting_id} by user {admin.user.id}")
    return Response(
        content=export_tasting_csv(tasting, ratings),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="tasting_{tasting_id}.csv"'},
    )
