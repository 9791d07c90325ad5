from fastapi import APIRouter

from app.api.endpoints import auth, account, admin, calendar, teacher, checkout, leads, cron

api_router = APIRouter()

# Health check endpoint for the API
@api_router.get("/health")
async def api_health_check():
    return {"status": "healthy"}

# Include all endpoint routers
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(account.router, prefix="/account", tags=["account"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
api_router.include_router(calendar.router, prefix="/calendar", tags=["calendar"])
api_router.include_router(teacher.router, tags=["teacher"])
api_router.include_router(checkout.router, tags=["checkout"])
api_router.include_router(leads.router, tags=["leads"])
api_router.include_router(cron.router, prefix="/cron", tags=["cron"])
