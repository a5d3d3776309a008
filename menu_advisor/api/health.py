from fastapi import APIRouter

from menu_advisor.config import APP_VERSION
from menu_advisor.schemas.analyze import HealthResponse

router = APIRouter()

@router.get(
    "",
    response_model=HealthResponse,
    status_code=200,
    summary="Health check",
    description="Health check endpoint for the menu analysis service"
)
def health_check():
    return HealthResponse(status="ok", version=APP_VERSION)
