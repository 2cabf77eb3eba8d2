from typing import List

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Query

from rewardapi.containers import Container
from rewardapi.core.security import verify_token
from rewardapi.deps import get_wheel_service
from rewardapi.schemas.wheel import RecentWinner, WheelPrizeListResponse, WheelSpinResult
from rewardapi.services.event_dispatcher import EventDispatcher
from rewardapi.services.wheel_service import WheelService

router = APIRouter(prefix="/wheel", tags=["wheel"])


@router.get("/prizes", response_model=WheelPrizeListResponse)
async def list_prizes(
    wheel_service: WheelService = Depends(get_wheel_service),
) -> WheelPrizeListResponse:
    return wheel_service.list_prizes()


@router.post("/spin", response_model=WheelSpinResult)
@inject
async def spin_wheel(
    user_id: int = Depends(verify_token),
    wheel_service: WheelService = Depends(get_wheel_service),
    dispatcher: EventDispatcher = Depends(Provide[Container.services.event_dispatcher]),
) -> WheelSpinResult:
    """휠 스핀 - 일일 스핀 1회 차감 후 당첨 포인트 지급"""
    wheel_service.reset_daily_spins_if_due(user_id)
    outcome = wheel_service.spin(user_id)
    await dispatcher.dispatch(outcome.events)
    return outcome.result


@router.get("/recent-winners", response_model=List[RecentWinner])
async def recent_winners(
    limit: int = Query(10, ge=1, le=50),
    wheel_service: WheelService = Depends(get_wheel_service),
) -> List[RecentWinner]:
    return wheel_service.recent_winners(limit)
