"""API router collection for the automation studio backend."""

from fastapi import APIRouter

from automation_studio.backend.app.api import automations, health, vocabulary

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(automations.router)
api_router.include_router(vocabulary.router)

__all__ = ["api_router"]
