from fastapi import APIRouter, Request

from readlater.schemas.common import HealthResponse

router = APIRouter()


def get_browser_status(request: Request) -> str:
    """Describe the shared browser: running, idle (not launched yet) or disabled."""
    manager = getattr(request.app.state, "browser_manager", None)
    if manager is None:
        return "disabled"
    return "running" if manager.is_healthy() else "idle"


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    return HealthResponse(
        status="ok",
        name="readlater-scraper-service",
        version="0.1.0",
        browser=get_browser_status(request),
    )
