# Frontend pages opened from bot links

from fastapi import APIRouter, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from config.settings import BASE_DIR

router = APIRouter()
templates = Jinja2Templates(directory=f"{BASE_DIR}/api/templates")


# Страницы только отдают разметку: токен разрешается из JS через /api/auth/resolve,
# дальнейшие вызовы API идут с тем же токеном в заголовке Authorization.

@router.get("/rate", response_class=HTMLResponse)
async def rating_page(request: Request, token: str = Query("")):
    """Форма оценки образцов."""
    return templates.TemplateResponse(request, "rate.html", {"token": token})


@router.get("/results", response_class=HTMLResponse)
async def results_page(request: Request, token: str = Query("")):
    """Результаты дегустации и радар-диаграмма профиля."""
    return templates.TemplateResponse(request, "results.html", {"token": token})


@router.get("/admin", response_class=HTMLResponse)
async def admin_page(request: Request, token: str = Query("")):
    """Админ-панель: дегустации, образцы, оси, выгрузка CSV."""
    return templates.TemplateResponse(request, "admin.html", {"token": token})
