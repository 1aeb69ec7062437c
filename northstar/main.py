from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from northstar.core.exceptions import NorthstarError
from northstar.core.logging_config import setup_json_logger
from northstar.core.request_logger import ContextLoggingMiddleware, RequestLoggingMiddleware
from northstar.database import Base, engine
from northstar.events import kafka_producer
from northstar.models import checkins, goals, journal, reminders  # noqa: F401  registers tables
from northstar.routes import (
    checkin_controller,
    goals_controller,
    journal_controller,
    preferences_controller,
    roadmap_controller,
)

logger = logging.getLogger("northstar")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_json_logger()
    logger.info("🚀 Northstar service starting up")
    Base.metadata.create_all(bind=engine)
    logger.info("✅ Database initialized")
    yield
    kafka_producer.flush()
    logger.info("🛑 Northstar service shutting down")


app = FastAPI(
    title="Northstar Goals API",
    description="Goal roadmaps, milestone/action progress, daily check-ins, streaks and journal.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs",
    openapi_url="/api/openapi.json",
    redoc_url=None,
)

app.add_middleware(RequestLoggingMiddleware)  # logs each request
app.add_middleware(ContextLoggingMiddleware)  # wraps the access log so it sees request_id/user_id

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure this properly in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NorthstarError)
async def northstar_error_handler(request: Request, exc: NorthstarError):
    if exc.status_code >= 500:
        logger.error(f"❌ {type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/api/health")
async def health():
    return {"status": "ok"}


app.include_router(goals_controller.router, prefix="/api", tags=["Goals"])
app.include_router(roadmap_controller.router, prefix="/api", tags=["Roadmap"])
app.include_router(checkin_controller.router, prefix="/api", tags=["Check-ins"])
app.include_router(journal_controller.router, prefix="/api", tags=["Journal"])
app.include_router(preferences_controller.router, prefix="/api", tags=["Preferences"])
