from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from rewardapi.models.shop import ShopItem, UserPurchase, UserSponsorInfo
from rewardapi.repositories.base import BaseRepository


class ShopRepository(BaseRepository[ShopItem]):
    """상점 상품/구매 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(ShopItem, db)

    def count_user_purchases(self, user_id: int, item_id: int) -> int:
        self.db.flush()
        stmt = select(func.count(UserPurchase.id)).where(
            UserPurchase.user_id == user_id,
            UserPurchase.item_id == item_id,
        )
        return self.db.execute(stmt).scalar_one()

    def get_sponsor_info(self, user_id: int, sponsor_id: int) -> Optional[UserSponsorInfo]:
        stmt = select(UserSponsorInfo).where(
            UserSponsorInfo.user_id == user_id,
            UserSponsorInfo.sponsor_id == sponsor_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def save_sponsor_info(self, user_id: int, sponsor_id: int, identifier: str) -> UserSponsorInfo:
        info = self.get_sponsor_info(user_id, sponsor_id)
        if info is None:
            info = UserSponsorInfo(user_id=user_id, sponsor_id=sponsor_id, identifier=identifier)
            self.db.add(info)
        else:
            info.identifier = identifier
        self.db.flush()
        return info

    def create_purchase(self, purchase: UserPurchase) -> UserPurchase:
        return self.add(purchase)

    def lock_order(self, order_id: int) -> Optional[UserPurchase]:
        self.db.flush()
        stmt = (
            select(UserPurchase)
            .where(UserPurchase.id == order_id)
            .with_for_update(of=UserPurchase)
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).unique().scalar_one_or_none()
