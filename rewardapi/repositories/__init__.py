# Repository layer - Data access; commits are owned by rewardapi.database.transaction

from .base import BaseRepository
from .user_repository import UserRepository, TelegramGroupUserRepository
from .points_repository import PointHistoryRepository
from .rank_repository import RankRepository
from .wheel_repository import WheelRepository
from .promocode_repository import PromocodeRepository
from .shop_repository import ShopRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "TelegramGroupUserRepository",
    "PointHistoryRepository",
    "RankRepository",
    "WheelRepository",
    "PromocodeRepository",
    "ShopRepository",
]
