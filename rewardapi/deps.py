from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from sqlalchemy.orm import Session

from rewardapi.config import EconomySettings
from rewardapi.containers import Container
from rewardapi.database.session import get_db
from rewardapi.services.cooldown_gate import AttemptThrottle, CooldownGate
from rewardapi.services.ledger_service import BalanceLedger
from rewardapi.services.message_reward_service import MessageRewardService
from rewardapi.services.promocode_service import PromocodeService
from rewardapi.services.shop_service import ShopService
from rewardapi.services.wheel_service import WheelService


def get_ledger(db: Session = Depends(get_db)) -> BalanceLedger:
    return BalanceLedger(db)


@inject
def get_wheel_service(
    db: Session = Depends(get_db),
    economy: EconomySettings = Depends(Provide[Container.config.economy]),
) -> WheelService:
    return WheelService(db=db, economy=economy)


@inject
def get_shop_service(
    db: Session = Depends(get_db),
    economy: EconomySettings = Depends(Provide[Container.config.economy]),
) -> ShopService:
    return ShopService(db=db, economy=economy)


@inject
def get_promocode_service(
    db: Session = Depends(get_db),
    economy: EconomySettings = Depends(Provide[Container.config.economy]),
    throttle: AttemptThrottle = Depends(Provide[Container.services.attempt_throttle]),
) -> PromocodeService:
    return PromocodeService(db=db, economy=economy, throttle=throttle)


@inject
def get_message_reward_service(
    db: Session = Depends(get_db),
    economy: EconomySettings = Depends(Provide[Container.config.economy]),
    cooldown_gate: CooldownGate = Depends(Provide[Container.services.cooldown_gate]),
) -> MessageRewardService:
    return MessageRewardService(db=db, economy=economy, cooldown_gate=cooldown_gate)
