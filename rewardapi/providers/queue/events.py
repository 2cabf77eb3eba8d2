from pydantic import BaseModel
from typing import Optional

from rewardapi.schemas.rank import RankInfo


class LevelUpNotification(BaseModel):
    """봇 워커가 텔레그램으로 전달하는 승급 알림"""
    kind: str = "level_up"
    user_id: int
    telegram_id: Optional[str] = None
    display_name: str
    rank: RankInfo
    deduplication_id: str


class OrderStatusNotification(BaseModel):
    kind: str = "order_status_change"
    user_id: int
    telegram_id: Optional[str] = None
    order_id: int
    item_name: str
    points_spent: int
    status: str
    delivery_info: Optional[str] = None
    deduplication_id: str
