from fastapi import APIRouter

from app.api.v1 import events, health, users

v1_router = APIRouter(prefix="/api/v1")

v1_router.include_router(events.router, prefix="/events", tags=["events"])
v1_router.include_router(users.router, prefix="/users", tags=["users"])
v1_router.include_router(health.router, prefix="/health", tags=["health"])
