from fastapi import APIRouter

from carealert.api.v1.endpoints import alert_checks

api_router = APIRouter()

# Include routers from endpoints
api_router.include_router(alert_checks.router, tags=["alert-checks"])
