import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from escuela import models  # noqa: F401  registra las tablas en Base.metadata
from escuela.config import settings
from escuela.database import Base, engine
from escuela.routers import (
    academics as academics_router,
    auth as auth_router,
    institutions as institutions_router,
    stats as stats_router,
    users as users_router,
    webhooks as webhooks_router,
)
from escuela.utils.errors import register_error_handlers

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Tablas verificadas en %s", engine.url.render_as_string(hide_password=True))
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="Escuela - Gestión Escolar", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    app.include_router(auth_router.router)
    app.include_router(users_router.router)
    app.include_router(institutions_router.router)
    app.include_router(academics_router.router)
    app.include_router(stats_router.router)
    app.include_router(webhooks_router.router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("escuela.main:app", host="127.0.0.1", port=8000, reload=True)
