from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from chat_proxy.api.deps import SettingsDep

router = APIRouter(tags=["page"])
templates = Jinja2Templates(directory=Path(__file__).resolve().parents[2] / "templates")


@router.get("/", response_class=HTMLResponse)
async def chat_page(request: Request, settings: SettingsDep):
    """Header with the mode switcher, and the chat widget."""
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "title": settings.PROJECT_NAME,
            "chat_endpoint": f"{settings.API_PREFIX}/chat",
        },
    )
