from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from app.core.config import settings
from app.api.api import api_router
from app.api.endpoints import pages
from app.database import init_db
from app.services.reminder_scheduler import start_reminder_scheduler, stop_reminder_scheduler

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Language School Campus API",
    description="FastAPI backend for the language school site and campus",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware - must be added before any routes
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router, prefix="/api")

# Localized campus pages
app.include_router(pages.router, tags=["pages"])


@app.on_event("startup")
async def startup_event():
    """Create database tables on startup and start the reminder scheduler"""
    try:
        init_db()
        logger.info("Database initialization completed")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        # Don't exit, let the app start anyway

    if settings.REMINDER_SCHEDULER_ENABLED:
        await start_reminder_scheduler()
    else:
        logger.info("[Scheduler] REMINDER_SCHEDULER_ENABLED is false; scheduler will not start.")


@app.on_event("shutdown")
async def shutdown_event():
    """Stop reminder scheduler on shutdown"""
    await stop_reminder_scheduler()


@app.get("/")
async def root():
    return {
        "message": "Language School Campus API",
        "version": "1.0.0",
        "docs": "/docs",
        "endpoints": {
            "authentication": "/api/auth",
            "account": "/api/account",
            "admin": "/api/admin",
            "calendar": "/api/calendar",
            "availability": "/api/teacher/availability",
            "packages": "/api/packages",
            "checkout": "/api/create-checkout",
            "leads": "/api/subscribe",
            "reminders": "/api/cron/send-reminders",
            "health": "/health"
        }
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        port=8000,
        reload=True
    )
