from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from posadmin.api.api_v1.api import api_router as api_v1_router
from posadmin.core.config import settings
from posadmin.core.logging_config import setup_logging, get_logger
from posadmin.services.scheduler import init_scheduler, shutdown_scheduler
from posadmin.db.session import SessionLocal
from posadmin.db.init_db import ensure_tables_exist, seed_defaults

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Tables, default organization and admin, then the scheduled jobs"""
    logger.info(f"🚀 {settings.PROJECT_NAME} starting")

    await ensure_tables_exist()
    async with SessionLocal() as db:
        await seed_defaults(db)
    logger.info("📊 Database ready")

    init_scheduler()
    yield
    shutdown_scheduler()
    logger.info("🛑 Stopped")


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    description="Retail POS administration: staff and roles, stock batches, purchasing, sales, transfers and shipments",
    lifespan=lifespan
)

if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(api_v1_router, prefix=settings.API_V1_STR)


@app.get("/")
async def root():
    return {"name": settings.PROJECT_NAME, "api": settings.API_V1_STR, "docs": "/docs"}
