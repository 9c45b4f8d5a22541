from fastapi import APIRouter

from chat_proxy.api.routes import chat, page

api_router = APIRouter()
api_router.include_router(chat.router)

page_router = APIRouter()
page_router.include_router(page.router)
