"""API router for version 1."""
from fastapi import APIRouter

from eiken_trainer.api.v1.endpoints import admin, levels, practice


api_router = APIRouter()
api_router.include_router(levels.router)
api_router.include_router(practice.router)
api_router.include_router(admin.router)
