"""
텔레그램 메시지 보상 정책

메시지 수 집계는 보상 여부와 무관하게 먼저 커밋됩니다. 이후 길이/쿨다운/연결
여부를 확인하고 포인트(+XP, 랭크) 지급을 하나의 트랜잭션으로 처리합니다.
쿨다운은 커밋이 끝난 뒤에만 설정합니다.
"""

import logging
from datetime import datetime
from typing import Callable, List

from sqlalchemy.orm import Session

from rewardapi.config import EconomySettings
from rewardapi.core.exceptions import (
    CooldownActiveError,
    MessageTooShortError,
    UserNotLinkedError,
)
from rewardapi.database.transaction import run_in_transaction
from rewardapi.models.points import PointHistoryType
from rewardapi.repositories.user_repository import (
    TelegramGroupUserRepository,
    UserRepository,
)
from rewardapi.schemas.events import (
    ActivityLogged,
    LeaderboardInvalidated,
    LevelUp,
    PolicyOutcome,
    PostCommitEvent,
)
from rewardapi.schemas.points import LedgerEntryInput
from rewardapi.schemas.telegram import MessageRewardResult, TelegramMessageRequest
from rewardapi.services.cooldown_gate import CooldownGate, message_cooldown_key
from rewardapi.services.ledger_service import BalanceLedger
from rewardapi.services.rank_service import RankResolver
from rewardapi.utils.timezone_utils import utc_now

logger = logging.getLogger(__name__)


class MessageRewardService:
    def __init__(
        self,
        db: Session,
        economy: EconomySettings,
        cooldown_gate: CooldownGate,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.economy = economy
        self.cooldown_gate = cooldown_gate
        self.clock = clock
        self.user_repo = UserRepository(db)
        self.group_user_repo = TelegramGroupUserRepository(db)
        self.ledger = BalanceLedger(db)
        self.rank_resolver = RankResolver(db, self.ledger)

    async def process_message(
        self, message: TelegramMessageRequest
    ) -> PolicyOutcome[MessageRewardResult]:
        """그룹 메시지 1건 처리

        Raises:
            MessageTooShortError, CooldownActiveError, UserNotLinkedError, TryAgainError
        """
        economy = self.economy
        telegram_id = message.telegram_id
        now = self.clock()

        # 1) 메시지 수 집계 (항상 커밋)
        group_user = run_in_transaction(
            self.db,
            lambda session: self.group_user_repo.record_message(
                telegram_id,
                now,
                username=message.username,
                first_name=message.first_name,
                last_name=message.last_name,
            ),
            economy.transaction_timeout_ms,
        )
        message_count = group_user.message_count
        linked_user_id = group_user.linked_user_id

        # 2) 길이
        if len(message.text) < economy.min_message_length:
            raise MessageTooShortError(details={"min_length": economy.min_message_length})

        # 3) 쿨다운
        cooldown_key = message_cooldown_key(telegram_id)
        remaining = await self.cooldown_gate.check_remaining(cooldown_key)
        if remaining > 0:
            raise CooldownActiveError(remaining)

        # 4) 사이트 계정 연결
        if linked_user_id is None:
            raise UserNotLinkedError(details={"telegram_id": telegram_id})

        should_give_xp = message_count % economy.messages_for_xp == 0
        xp_delta = economy.xp_per_message if should_give_xp else 0

        # 5) 보상 지급 트랜잭션
        def _work(session: Session):
            snapshot = self.ledger.apply_delta(
                linked_user_id,
                economy.points_per_message,
                xp_delta,
                LedgerEntryInput(
                    type=PointHistoryType.MESSAGE_REWARD,
                    description="Group message reward",
                    related_id=telegram_id,
                ),
            )
            rank_change = None
            if xp_delta > 0:
                rank_change = self.rank_resolver.resolve(linked_user_id, snapshot.xp)
            # 랭크 보너스까지 반영된 최신 행
            user = self.user_repo.lock(linked_user_id)
            return user, rank_change

        user, rank_change = run_in_transaction(
            self.db, _work, economy.transaction_timeout_ms
        )

        # 6) 커밋 이후 쿨다운 설정
        await self.cooldown_gate.set(cooldown_key, economy.message_cooldown_seconds)

        result = MessageRewardResult(
            points_added=economy.points_per_message,
            xp_added=xp_delta,
            new_balance=user.points,
            new_xp=user.xp,
            message_count=message_count,
            rank_change=rank_change,
        )
        logger.info(
            f"Message reward for telegram {telegram_id} (user {linked_user_id}): "
            f"+{result.points_added} points, +{result.xp_added} xp, count {message_count}"
        )

        events: List[PostCommitEvent] = [LeaderboardInvalidated(throttled=True)]
        if rank_change is not None:
            if economy.notify_level_up:
                events.append(
                    LevelUp(
                        user_id=linked_user_id,
                        telegram_id=user.telegram_id or telegram_id,
                        display_name=user.display_name,
                        rank=rank_change.to_rank_info(),
                    )
                )
            events.append(
                ActivityLogged(
                    user_id=linked_user_id,
                    action_type="rank_up",
                    action_title=f"Reached rank {rank_change.name}",
                    action_description=(
                        f"+{rank_change.points_awarded} bonus points"
                        if rank_change.points_awarded
                        else None
                    ),
                    related_id=str(rank_change.rank_id),
                    related_type="rank",
                    amounts={"points": rank_change.points_awarded, "xp": rank_change.xp},
                    metadata={"previous_rank_id": rank_change.previous_rank_id},
                )
            )
        return PolicyOutcome(result=result, events=events)
