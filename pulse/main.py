import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from pulse.config import get_settings
from pulse.database import close_db, init_db
from pulse.routers import auth, entries, insights, pages

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info("%s started (sign-in %s)", settings.app_name,
                "required" if settings.require_sign_in else "optional")
    yield
    await close_db()


app = FastAPI(
    title=settings.app_name,
    description="Daily mood and habit check-ins with weekly trends and pattern insights",
    version="1.0.0",
    lifespan=lifespan,
)

app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

app.include_router(auth.router)
app.include_router(entries.router)
app.include_router(insights.router)
app.include_router(pages.router)


@app.get("/health")
async def health_check():
    return {"status": "healthy", "app": settings.app_name}
