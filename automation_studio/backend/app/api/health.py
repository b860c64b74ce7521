"""Health endpoint for the automation studio backend."""

from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "service": "automation_studio_backend"}


__all__ = ["router"]
