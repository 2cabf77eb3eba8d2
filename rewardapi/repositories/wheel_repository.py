from typing import List

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from rewardapi.models.user import User
from rewardapi.models.wheel import WheelPrize, WheelSpin
from rewardapi.repositories.base import BaseRepository


class WheelRepository(BaseRepository[WheelPrize]):
    """휠 상품/스핀 기록 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(WheelPrize, db)

    def get_active_prizes(self) -> List[WheelPrize]:
        stmt = (
            select(WheelPrize)
            .where(WheelPrize.is_active.is_(True))
            .order_by(WheelPrize.order, WheelPrize.id)
        )
        return list(self.db.execute(stmt).scalars())

    def create_spin(self, spin: WheelSpin) -> WheelSpin:
        return self.add(spin)

    def get_recent_spins(self, limit: int = 10) -> List[tuple]:
        """최근 당첨 (0점 제외) - (WheelSpin, User) 튜플 목록"""
        stmt = (
            select(WheelSpin, User)
            .join(User, User.id == WheelSpin.user_id)
            .where(WheelSpin.points_won > 0)
            .order_by(desc(WheelSpin.id))
            .limit(limit)
        )
        return [(spin, user) for spin, user in self.db.execute(stmt).all()]
