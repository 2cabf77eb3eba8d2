from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from rewardapi.models.promocode import Promocode, PromocodeUsage
from rewardapi.repositories.base import BaseRepository


class PromocodeRepository(BaseRepository[Promocode]):
    def __init__(self, db: Session):
        super().__init__(Promocode, db)

    def get_by_code(self, code: str, for_update: bool = False) -> Optional[Promocode]:
        stmt = select(Promocode).where(Promocode.code == code)
        if for_update:
            self.db.flush()
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.db.execute(stmt).scalar_one_or_none()

    def find_usage(self, promocode_id: int, user_id: int) -> Optional[PromocodeUsage]:
        stmt = select(PromocodeUsage).where(
            PromocodeUsage.promocode_id == promocode_id,
            PromocodeUsage.user_id == user_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def create_usage(self, usage: PromocodeUsage) -> PromocodeUsage:
        """사용 사실 추가 - 유니크 제약 위반 시 IntegrityError 전파"""
        return self.add(usage)
