import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from rewardapi.database.session import get_db
from rewardapi.schemas.health import HealthCheckResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(db: Session = Depends(get_db)) -> HealthCheckResponse:
    """Health check endpoint."""
    try:
        db.execute(text("SELECT 1"))
        return HealthCheckResponse()
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return HealthCheckResponse(status="degraded", database=False, error=str(e))
