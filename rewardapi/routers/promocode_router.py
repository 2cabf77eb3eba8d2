from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends

from rewardapi.containers import Container
from rewardapi.core.security import verify_token
from rewardapi.deps import get_promocode_service
from rewardapi.schemas.promocode import PromocodeRedeemRequest, PromocodeRedeemResult
from rewardapi.services.event_dispatcher import EventDispatcher
from rewardapi.services.promocode_service import PromocodeService

router = APIRouter(prefix="/promocodes", tags=["promocodes"])


@router.post("/redeem", response_model=PromocodeRedeemResult)
@inject
async def redeem_promocode(
    request: PromocodeRedeemRequest,
    user_id: int = Depends(verify_token),
    promocode_service: PromocodeService = Depends(get_promocode_service),
    dispatcher: EventDispatcher = Depends(Provide[Container.services.event_dispatcher]),
) -> PromocodeRedeemResult:
    outcome = await promocode_service.redeem(user_id, request.code)
    await dispatcher.dispatch(outcome.events)
    return outcome.result
