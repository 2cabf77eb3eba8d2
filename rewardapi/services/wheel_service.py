"""
휠 스핀 정책

일일 스핀 횟수 차감, 가중치 추첨, 연속 스핀(streak) 갱신, 당첨 포인트 지급을
하나의 트랜잭션으로 처리합니다. 하루의 경계는 설정 타임존 기준입니다.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from rewardapi.config import EconomySettings
from rewardapi.core.exceptions import NoPrizesError, NoSpinsLeftError, UserNotFoundError
from rewardapi.database.transaction import revalidated_transaction, run_in_transaction
from rewardapi.models.points import PointHistoryType
from rewardapi.models.user import User
from rewardapi.models.wheel import WheelSpin
from rewardapi.repositories.user_repository import UserRepository
from rewardapi.repositories.wheel_repository import WheelRepository
from rewardapi.schemas.events import (
    ActivityLogged,
    LeaderboardInvalidated,
    PolicyOutcome,
    UserInvalidated,
)
from rewardapi.schemas.points import LedgerEntryInput
from rewardapi.schemas.wheel import (
    RecentWinner,
    SpinResetResult,
    WheelPrizeItem,
    WheelPrizeListResponse,
    WheelSpinResult,
    WheelStreak,
)
from rewardapi.services.ledger_service import BalanceLedger
from rewardapi.utils.timezone_utils import (
    last_reset_boundary,
    start_of_day,
    start_of_yesterday,
    to_utc,
    utc_now,
)
from rewardapi.utils.weighted_random import EmptyChoiceError, select_weighted

logger = logging.getLogger(__name__)


@dataclass
class _StreakUpdate:
    current: int
    is_first_spin_today: bool


class WheelService:
    """휠 스핀 서비스"""

    def __init__(
        self,
        db: Session,
        economy: EconomySettings,
        rng: Optional[Callable[[float, float], float]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.economy = economy
        self.rng = rng
        self.clock = clock
        self.user_repo = UserRepository(db)
        self.wheel_repo = WheelRepository(db)
        self.ledger = BalanceLedger(db)

    # ==================== 조회 ====================

    def list_prizes(self) -> WheelPrizeListResponse:
        prizes = [
            WheelPrizeItem.model_validate(prize, from_attributes=True)
            for prize in self.wheel_repo.get_active_prizes()
        ]
        return WheelPrizeListResponse(
            prizes=prizes,
            daily_spins=self.economy.daily_wheel_spins,
            reset_time=self.economy.wheel_reset_time,
        )

    def recent_winners(self, limit: int = 10) -> List[RecentWinner]:
        limit = max(1, min(limit, 50))
        return [
            RecentWinner(
                user_id=user.id,
                display_name=user.display_name,
                prize_name=spin.prize.name,
                points_won=spin.points_won,
                spun_at=to_utc(spin.spun_at).isoformat(),
            )
            for spin, user in self.wheel_repo.get_recent_spins(limit)
        ]

    # ==================== 일일 초기화 ====================

    def reset_daily_spins_if_due(self, user_id: int) -> SpinResetResult:
        """마지막 초기화가 가장 최근 초기화 시각보다 이전이면 일일 스핀 횟수를 채움"""
        now = self.clock()
        boundary = last_reset_boundary(
            self.economy.timezone, self.economy.wheel_reset_time, now
        )

        def _work(session: Session) -> SpinResetResult:
            user = self.user_repo.lock(user_id)
            if user is None:
                raise UserNotFoundError(details={"user_id": user_id})

            if user.last_spin_reset is not None and to_utc(user.last_spin_reset) >= boundary:
                return SpinResetResult(daily_spins_left=user.daily_spins_left, was_reset=False)

            user.daily_spins_left = self.economy.daily_wheel_spins
            user.last_spin_reset = now
            session.flush()
            return SpinResetResult(daily_spins_left=user.daily_spins_left, was_reset=True)

        result = run_in_transaction(self.db, _work, self.economy.transaction_timeout_ms)
        if result.was_reset:
            logger.info(f"Daily wheel spins reset for user {user_id}: {result.daily_spins_left}")
        return result

    # ==================== 스핀 ====================

    def _compute_streak(self, user: User, now: datetime) -> _StreakUpdate:
        """연속 스핀 계산

        - 마지막 스핀이 어제 00:00 이전이면 0 으로 초기화
        - 오늘 첫 스핀일 때만 1 증가
        """
        tz_name = self.economy.timezone
        today_start = start_of_day(tz_name, now)
        yesterday_start = start_of_yesterday(tz_name, now)

        last_spin = to_utc(user.last_wheel_spin_date) if user.last_wheel_spin_date else None
        current = user.weekly_wheel_streak or 0

        if last_spin is None or last_spin < yesterday_start:
            current = 0

        is_first_spin_today = last_spin is None or last_spin < today_start
        if is_first_spin_today:
            current += 1

        return _StreakUpdate(current=current, is_first_spin_today=is_first_spin_today)

    def spin(self, user_id: int) -> PolicyOutcome[WheelSpinResult]:
        """휠 스핀

        Raises:
            UserNotFoundError, NoSpinsLeftError, NoPrizesError, TryAgainError
        """
        now = self.clock()

        def load(session: Session, for_update: bool) -> Optional[User]:
            if for_update:
                return self.user_repo.lock(user_id)
            return self.user_repo.get(user_id)

        def check(user: Optional[User]) -> None:
            if user is None:
                raise UserNotFoundError(details={"user_id": user_id})
            if user.daily_spins_left <= 0:
                raise NoSpinsLeftError(details={"daily_spins_left": user.daily_spins_left})

        def apply(session: Session, user: User) -> WheelSpinResult:
            prizes = self.wheel_repo.get_active_prizes()
            try:
                prize_id = select_weighted(
                    [(prize.id, prize.probability) for prize in prizes], self.rng
                )
            except EmptyChoiceError as e:
                raise NoPrizesError() from e

            prize_index = next(i for i, prize in enumerate(prizes) if prize.id == prize_id)
            prize = prizes[prize_index]

            streak = self._compute_streak(user, now)
            user.daily_spins_left -= 1
            user.weekly_wheel_streak = streak.current
            user.last_wheel_spin_date = now

            spin = self.wheel_repo.create_spin(
                WheelSpin(
                    user_id=user_id,
                    prize_id=prize.id,
                    points_won=prize.points,
                    spun_at=now,
                )
            )

            snapshot = self.ledger.apply_delta(
                user_id,
                prize.points,
                0,
                LedgerEntryInput(
                    type=PointHistoryType.WHEEL_WIN,
                    description=f"Wheel prize: {prize.name}",
                    related_id=str(spin.id),
                ),
            )

            return WheelSpinResult(
                prize=WheelPrizeItem.model_validate(prize, from_attributes=True),
                prize_index=prize_index,
                points_won=prize.points,
                new_balance=snapshot.points,
                daily_spins_left=user.daily_spins_left,
                streak=WheelStreak(
                    current=streak.current,
                    is_first_spin_today=streak.is_first_spin_today,
                ),
                spin_id=spin.id,
            )

        try:
            result = revalidated_transaction(
                self.db, load, check, apply, self.economy.transaction_timeout_ms
            )
        except (NoSpinsLeftError, NoPrizesError) as e:
            logger.info(f"Wheel spin rejected for user {user_id}: {e.error_code}")
            raise

        logger.info(
            f"User {user_id} spun the wheel: {result.prize.name} (+{result.points_won}), "
            f"{result.daily_spins_left} spins left"
        )
        events = [
            LeaderboardInvalidated(),
            UserInvalidated(user_id=user_id),
            ActivityLogged(
                user_id=user_id,
                action_type="wheel_spin",
                action_title=f"Won {result.prize.name} on the wheel",
                action_description=f"+{result.points_won} points",
                related_id=str(result.spin_id),
                related_type="wheel_spin",
                amounts={"points": result.points_won},
                metadata={"prize_id": result.prize.id, "streak": result.streak.current},
            ),
        ]
        return PolicyOutcome(result=result, events=events)
