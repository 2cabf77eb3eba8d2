"""
프로모코드 사용 정책

1인 1회 사용은 트랜잭션 안의 재검증과 (promocode_id, user_id) 유니크 제약
두 단계로 보장합니다. 시도 제한(throttle)은 그 앞단의 베스트 에포트 방어입니다.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rewardapi.config import EconomySettings
from rewardapi.core.exceptions import (
    AlreadyUsedError,
    CodeExpiredError,
    CodeInactiveError,
    CodeNotFoundError,
    CooldownActiveError,
    EconomyError,
    UsageLimitReachedError,
    UserNotFoundError,
)
from rewardapi.database.transaction import revalidated_transaction
from rewardapi.models.points import PointHistoryType
from rewardapi.models.promocode import Promocode, PromocodeUsage
from rewardapi.models.user import User
from rewardapi.repositories.promocode_repository import PromocodeRepository
from rewardapi.repositories.user_repository import UserRepository
from rewardapi.schemas.events import (
    ActivityLogged,
    LeaderboardInvalidated,
    PolicyOutcome,
    UserInvalidated,
)
from rewardapi.schemas.points import LedgerEntryInput
from rewardapi.schemas.promocode import PromocodeRedeemResult
from rewardapi.services.cooldown_gate import AttemptThrottle, promocode_attempt_key
from rewardapi.services.ledger_service import BalanceLedger
from rewardapi.utils.timezone_utils import to_utc, utc_now

logger = logging.getLogger(__name__)


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


@dataclass
class _RedeemState:
    user: Optional[User]
    promocode: Optional[Promocode]
    usage: Optional[PromocodeUsage]


class PromocodeService:
    def __init__(
        self,
        db: Session,
        economy: EconomySettings,
        throttle: AttemptThrottle,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.economy = economy
        self.throttle = throttle
        self.clock = clock
        self.user_repo = UserRepository(db)
        self.promocode_repo = PromocodeRepository(db)
        self.ledger = BalanceLedger(db)

    async def redeem(self, user_id: int, code: str) -> PolicyOutcome[PromocodeRedeemResult]:
        """프로모코드 사용

        Raises:
            CooldownActiveError: 시도 제한 초과
            CodeNotFoundError, CodeInactiveError, CodeExpiredError,
            UsageLimitReachedError, AlreadyUsedError, UserNotFoundError, TryAgainError
        """
        normalized = normalize_code(code)
        if not normalized:
            raise CodeNotFoundError()

        remaining = await self.throttle.hit(
            promocode_attempt_key(user_id),
            self.economy.promocode_attempts_per_window,
            self.economy.promocode_attempt_window_seconds,
        )
        if remaining > 0:
            logger.warning(f"Promocode attempts throttled for user {user_id} ({remaining}s)")
            raise CooldownActiveError(
                remaining, "Too many promocode attempts, please wait"
            )

        try:
            outcome = self._redeem(user_id, normalized)
        except EconomyError as e:
            logger.info(f"Promocode {normalized} rejected for user {user_id}: {e.error_code}")
            raise
        return outcome

    def _redeem(self, user_id: int, code: str) -> PolicyOutcome[PromocodeRedeemResult]:
        now = self.clock()

        def load(session: Session, for_update: bool) -> _RedeemState:
            user = self.user_repo.lock(user_id) if for_update else self.user_repo.get(user_id)
            promocode = self.promocode_repo.get_by_code(code, for_update=for_update)
            usage = None
            if promocode is not None:
                usage = self.promocode_repo.find_usage(promocode.id, user_id)
            return _RedeemState(user=user, promocode=promocode, usage=usage)

        def check(state: _RedeemState) -> None:
            if state.user is None:
                raise UserNotFoundError(details={"user_id": user_id})
            promocode = state.promocode
            if promocode is None:
                raise CodeNotFoundError(details={"code": code})
            if not promocode.is_active:
                raise CodeInactiveError(details={"code": code})
            if promocode.expires_at is not None and to_utc(promocode.expires_at) < now:
                raise CodeExpiredError(details={"code": code})
            if promocode.used_count >= promocode.max_uses:
                raise UsageLimitReachedError(details={"code": code})
            if state.usage is not None:
                raise AlreadyUsedError(details={"code": code})

        def apply(session: Session, state: _RedeemState) -> PromocodeRedeemResult:
            promocode = state.promocode
            try:
                usage = self.promocode_repo.create_usage(
                    PromocodeUsage(
                        promocode_id=promocode.id,
                        user_id=user_id,
                        points_earned=promocode.points,
                    )
                )
            except IntegrityError as e:
                # 동시 요청이 먼저 사용 기록을 남긴 경우
                raise AlreadyUsedError(details={"code": code}) from e

            promocode.used_count += 1
            snapshot = self.ledger.apply_delta(
                user_id,
                promocode.points,
                0,
                LedgerEntryInput(
                    type=PointHistoryType.PROMOCODE,
                    description=f"Promocode {code}",
                    related_id=str(usage.id),
                ),
            )

            return PromocodeRedeemResult(
                code=code,
                points_earned=promocode.points,
                new_balance=snapshot.points,
                usage_id=usage.id,
                message=f"{promocode.points} points added to your balance",
            )

        result = revalidated_transaction(
            self.db, load, check, apply, self.economy.transaction_timeout_ms
        )
        logger.info(f"User {user_id} redeemed promocode {code} (+{result.points_earned})")

        events = [
            LeaderboardInvalidated(),
            UserInvalidated(user_id=user_id),
            ActivityLogged(
                user_id=user_id,
                action_type="promocode_use",
                action_title=f"Redeemed promocode {code}",
                action_description=f"+{result.points_earned} points",
                related_id=str(result.usage_id),
                related_type="promocode",
                amounts={"points": result.points_earned},
                metadata={"code": code},
            ),
        ]
        return PolicyOutcome(result=result, events=events)
