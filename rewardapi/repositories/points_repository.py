"""
포인트 원장 리포지토리 - point_history 테이블 접근

원장은 추가 전용입니다. 이 리포지토리에는 수정/삭제 메서드가 없습니다.
"""

from typing import List

from sqlalchemy import asc, desc, func, select
from sqlalchemy.orm import Session

from rewardapi.models.points import PointHistory
from rewardapi.models.user import User
from rewardapi.repositories.base import BaseRepository
from rewardapi.schemas.points import PointHistoryEntry


class PointHistoryRepository(BaseRepository[PointHistory]):
    """포인트 원장 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(PointHistory, db)

    def _to_entry(self, model_instance: PointHistory) -> PointHistoryEntry:
        return PointHistoryEntry(
            id=model_instance.id,
            amount=model_instance.amount,
            type=model_instance.type,
            description=model_instance.description,
            related_id=model_instance.related_id,
            balance_before=model_instance.balance_before,
            balance_after=model_instance.balance_after,
            created_at=(
                model_instance.created_at.strftime("%Y-%m-%d %H:%M:%S")
                if model_instance.created_at
                else None
            ),
        )

    def append(self, entry: PointHistory) -> PointHistory:
        return self.add(entry)

    def get_user_history(
        self, user_id: int, limit: int = 50, offset: int = 0
    ) -> List[PointHistoryEntry]:
        """사용자 원장 조회 (최신순)"""
        rows = (
            self.db.query(PointHistory)
            .filter(PointHistory.user_id == user_id)
            .order_by(desc(PointHistory.id))
            .limit(limit)
            .offset(offset)
            .all()
        )
        return [self._to_entry(row) for row in rows]

    def count_for_user(self, user_id: int) -> int:
        return self.count({"user_id": user_id})

    def replay_for_user(self, user_id: int) -> List[PointHistory]:
        """생성(커밋) 순서대로 전체 원장 조회"""
        return (
            self.db.query(PointHistory)
            .filter(PointHistory.user_id == user_id)
            .order_by(asc(PointHistory.id))
            .all()
        )

    def total_amounts(self) -> int:
        return self.db.execute(select(func.coalesce(func.sum(PointHistory.amount), 0))).scalar_one()

    def total_user_points(self) -> int:
        return self.db.execute(select(func.coalesce(func.sum(User.points), 0))).scalar_one()

    def total_entries(self) -> int:
        return self.db.execute(select(func.count(PointHistory.id))).scalar_one()
