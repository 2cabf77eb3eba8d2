from typing import List, Optional

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from rewardapi.models.rank import Rank
from rewardapi.repositories.base import BaseRepository


class RankRepository(BaseRepository[Rank]):
    def __init__(self, db: Session):
        super().__init__(Rank, db)

    def find_for_xp(self, xp: int) -> Optional[Rank]:
        """min_xp <= xp 인 랭크 중 min_xp 가 가장 큰 랭크"""
        stmt = (
            select(Rank)
            .where(Rank.min_xp <= xp)
            .order_by(desc(Rank.min_xp))
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_ordered(self) -> List[Rank]:
        return list(self.db.execute(select(Rank).order_by(Rank.min_xp)).scalars())
