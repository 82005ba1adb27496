"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from invest_calendar.config import settings
from invest_calendar.database import Base, engine

# Import routers
from invest_calendar.routers import users, companies, events, responses, calendar

# Import all models so Base.metadata knows about them
from invest_calendar.models.user import User                               # noqa: F401
from invest_calendar.models.company import Company, UserCompanyOrder       # noqa: F401
from invest_calendar.models.event import Event, EventCompany, EventHost    # noqa: F401
from invest_calendar.models.response import UserEventResponse              # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Investment Event Calendar",
    description="Company x date calendar of investor events with hosts, filters and RSVPs",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(companies.router, prefix="/api/companies", tags=["Companies"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(responses.router, prefix="/api/responses", tags=["Responses"])
app.include_router(calendar.router, prefix="/api/calendar", tags=["Calendar"])


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
