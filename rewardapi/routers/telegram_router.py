from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends

from rewardapi.containers import Container
from rewardapi.core.security import verify_internal_token
from rewardapi.deps import get_message_reward_service
from rewardapi.schemas.telegram import MessageRewardResult, TelegramMessageRequest
from rewardapi.services.event_dispatcher import EventDispatcher
from rewardapi.services.message_reward_service import MessageRewardService

# 봇 워커 전용
router = APIRouter(
    prefix="/telegram",
    tags=["telegram"],
    dependencies=[Depends(verify_internal_token)],
)


@router.post("/messages", response_model=MessageRewardResult)
@inject
async def process_group_message(
    message: TelegramMessageRequest,
    service: MessageRewardService = Depends(get_message_reward_service),
    dispatcher: EventDispatcher = Depends(Provide[Container.services.event_dispatcher]),
) -> MessageRewardResult:
    outcome = await service.process_message(message)
    await dispatcher.dispatch(outcome.events)
    return outcome.result
