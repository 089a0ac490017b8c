# krishi_quest/main.py
"""
FastAPI entrypoint for the Krishi Quest API.

Notes:
- Settings come from .env / environment (see krishi_quest.config.settings)
- One FastAPI app; every resource router is mounted under /api
- Storage is picked by STORAGE_BACKEND (memory | sql) and kept on app.state
- Domain errors render as {"error": message} with their HTTP status
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from krishi_quest.config import settings
from krishi_quest.db import SqlRepository
from krishi_quest.errors import DomainError
from krishi_quest.memory_repo import MemoryRepository
from krishi_quest.repository import Repository
from krishi_quest.seed import seed_defaults

# Routers
from krishi_quest.routes.farms import router as farms_router
from krishi_quest.routes.leaderboard import router as leaderboard_router
from krishi_quest.routes.market import router as market_router
from krishi_quest.routes.quests import router as quests_router
from krishi_quest.routes.schemes import router as schemes_router
from krishi_quest.routes.users import router as users_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_repository(backend: Optional[str] = None) -> Repository:
    backend = (backend or settings.STORAGE_BACKEND).lower()
    if backend == "memory":
        return MemoryRepository()
    if backend == "sql":
        return SqlRepository(settings.DATABASE_URL, echo=settings.SQL_ECHO)
    raise ValueError(f"Unknown STORAGE_BACKEND {backend!r}; use 'memory' or 'sql'")


def create_app(repository: Optional[Repository] = None, seed: Optional[bool] = None) -> FastAPI:
    app = FastAPI(title="Krishi Quest API")
    app.state.repository = repository if repository is not None else build_repository()
    seed_on_startup = settings.SEED_DEFAULTS if seed is None else seed

    # include routers under /api
    app.include_router(users_router, prefix="/api")
    app.include_router(farms_router, prefix="/api")
    app.include_router(quests_router, prefix="/api")
    app.include_router(schemes_router, prefix="/api")
    app.include_router(market_router, prefix="/api")
    app.include_router(leaderboard_router, prefix="/api")

    # -------------------------------------------------------------------------
    # CORS configuration (origins from CORS_ORIGINS)
    # -------------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Error rendering
    # -------------------------------------------------------------------------
    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.info("%s %s rejected payload: %s", request.method, request.url.path, exc.errors())
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request data", "detail": jsonable_encoder(exc.errors())},
        )

    # -------------------------------------------------------------------------
    # Startup: prepare storage & (optionally) seed the default catalog
    # -------------------------------------------------------------------------
    @app.on_event("startup")
    async def on_startup():
        repo: Repository = app.state.repository
        await repo.init()
        if seed_on_startup:
            await seed_defaults(repo)

    @app.on_event("shutdown")
    async def on_shutdown():
        await app.state.repository.close()

    # -------------------------------------------------------------------------
    # Health & Ping
    # -------------------------------------------------------------------------
    @app.get("/")
    async def root():
        return {"message": "Backend running"}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/api/ping")
    def ping():
        return {"message": "pong", "service": "Krishi Quest Backend"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("krishi_quest.main:app", host="0.0.0.0", port=settings.PORT)
