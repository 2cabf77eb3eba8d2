from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from rewardapi.models.telegram import TelegramGroupUser
from rewardapi.models.user import User as UserModel
from rewardapi.repositories.base import BaseRepository
from rewardapi.schemas.points import PointsBalanceResponse


class UserRepository(BaseRepository[UserModel]):
    """사용자 리포지토리 - 잔액 행 조회/잠금"""

    def __init__(self, db: Session):
        super().__init__(UserModel, db)

    def get_balance(self, user_id: int) -> Optional[PointsBalanceResponse]:
        user = self.get(user_id)
        if user is None:
            return None
        return PointsBalanceResponse(balance=user.points, xp=user.xp, rank_id=user.rank_id)


class TelegramGroupUserRepository(BaseRepository[TelegramGroupUser]):
    """텔레그램 그룹 사용자 - 메시지 카운트 집계"""

    def __init__(self, db: Session):
        super().__init__(TelegramGroupUser, db)

    def lock_by_telegram_id(self, telegram_id: str) -> Optional[TelegramGroupUser]:
        self.db.flush()
        stmt = (
            select(TelegramGroupUser)
            .where(TelegramGroupUser.telegram_id == telegram_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def record_message(
        self,
        telegram_id: str,
        now: datetime,
        username: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> TelegramGroupUser:
        """메시지 수 증가 (없으면 생성) - 재조회한 행을 기준으로 +1"""
        group_user = self.lock_by_telegram_id(telegram_id)

        if group_user is None:
            group_user = TelegramGroupUser(
                telegram_id=telegram_id,
                username=username,
                first_name=first_name,
                last_name=last_name,
                message_count=0,
                daily_message_count=0,
                weekly_message_count=0,
                monthly_message_count=0,
            )
            self.db.add(group_user)
        else:
            group_user.username = username or group_user.username
            group_user.first_name = first_name or group_user.first_name
            group_user.last_name = last_name or group_user.last_name

        group_user.message_count += 1
        group_user.daily_message_count += 1
        group_user.weekly_message_count += 1
        group_user.monthly_message_count += 1
        group_user.last_message_at = now
        self.db.flush()
        return group_user
