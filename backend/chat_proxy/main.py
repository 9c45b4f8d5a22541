from contextlib import asynccontextmanager
from typing import Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.routing import APIRoute
from starlette.middleware.cors import CORSMiddleware

from chat_proxy.api.main import api_router, page_router
from chat_proxy.core.config import Settings, get_settings
from chat_proxy.core.logging import configure_logging
from chat_proxy.middleware.request_id import RequestIdMiddleware
from chat_proxy.observability import MetricsMiddleware, metrics_router
from chat_proxy.providers.base import Provider
from chat_proxy.providers.openai_compatible import OpenAICompatibleProvider

def custom_generate_unique_id(route: APIRoute) -> str:
    return f"{route.tags[0]}-{route.name}" if route.tags else route.name


def create_app(
    settings: Optional[Settings] = None,
    provider: Optional[Provider] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
        sentry_sdk.init(dsn=str(settings.SENTRY_DSN), enable_tracing=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.provider.aclose()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        generate_unique_id_function=custom_generate_unique_id,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.provider = provider or OpenAICompatibleProvider(settings.provider_config())

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(MetricsMiddleware)

    # Set all CORS enabled origins
    if settings.all_cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.all_cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(api_router, prefix=settings.API_PREFIX)
    app.include_router(page_router)
    app.include_router(metrics_router)

    @app.get("/health", tags=["utils"])
    async def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
