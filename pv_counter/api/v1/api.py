from fastapi import APIRouter
from .endpoints import admin, counter

api_router = APIRouter()

api_router.include_router(
    counter.router,
    prefix="/visit",
    tags=["visit"],
    responses={
        400: {"description": "Missing url parameter"},
        403: {"description": "Origin not allowed"},
        500: {"description": "Internal server error"},
    }
)

api_router.include_router(
    admin.router,
    prefix="/admin",
    tags=["admin"],
    responses={
        401: {"description": "Unauthorized"},
        500: {"description": "Internal server error"},
    }
)

@api_router.get("/health", tags=["health"])
async def health_check():
    return {"status": "healthy", "service": "pv_counter"}
