from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from candlescope.api.router import api_router
from candlescope.core.middleware import RequestLogMiddleware
from candlescope.core.settings import settings
from candlescope.utils.logger import configure_logging


def create_app() -> FastAPI:
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="candlescope",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS: permissive by default for local frontend integration.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request id + one access line per request (with detector counts).
    app.add_middleware(RequestLogMiddleware)

    app.include_router(api_router)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "env": settings.APP_ENV}

    return app


app = create_app()
