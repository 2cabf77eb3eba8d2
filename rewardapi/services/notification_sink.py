"""
캐시 무효화 / 알림 싱크

커밋 이후에만 호출됩니다. 실패는 호출자(EventDispatcher)가 로그로 남기고 무시합니다.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from rewardapi.providers.queue.events import LevelUpNotification, OrderStatusNotification
from rewardapi.providers.queue.sqs import SQSClient
from rewardapi.schemas.events import OrderStatusChanged
from rewardapi.schemas.rank import RankInfo
from rewardapi.services.redis_service import RedisService

logger = logging.getLogger(__name__)

LEADERBOARD_CACHE_KEYS = ("leaderboard:points", "leaderboard:xp", "leaderboard:streak")


def user_cache_key(user_id: int) -> str:
    return f"user:{user_id}"


class NotificationSink(ABC):
    @abstractmethod
    async def invalidate_leaderboard(self) -> None: ...

    @abstractmethod
    async def invalidate_user(self, user_id: int) -> None: ...

    @abstractmethod
    async def notify_level_up(
        self, user_id: int, rank_info: RankInfo, telegram_id: Optional[str] = None, display_name: str = ""
    ) -> None: ...

    @abstractmethod
    async def notify_order_status_change(self, user_id: int, order_info: OrderStatusChanged) -> None: ...


class QueueNotificationSink(NotificationSink):
    """redis 캐시 키 삭제 + SQS 알림 발행"""

    def __init__(
        self,
        redis_service: RedisService,
        sqs_client: Optional[SQSClient],
        queue_url: Optional[str],
    ):
        self.redis = redis_service
        self.sqs_client = sqs_client
        self.queue_url = queue_url

    async def invalidate_leaderboard(self) -> None:
        await self.redis.delete(*LEADERBOARD_CACHE_KEYS)

    async def invalidate_user(self, user_id: int) -> None:
        await self.redis.delete(user_cache_key(user_id))

    async def _publish(self, body: dict, group_id: str) -> None:
        if self.sqs_client is None or not self.queue_url:
            logger.debug(f"Notification queue not configured, dropping {body.get('kind')}")
            return
        # boto3 는 동기 클라이언트
        await asyncio.to_thread(self.sqs_client.send_message, self.queue_url, body, group_id)

    async def notify_level_up(
        self, user_id: int, rank_info: RankInfo, telegram_id: Optional[str] = None, display_name: str = ""
    ) -> None:
        message = LevelUpNotification(
            user_id=user_id,
            telegram_id=telegram_id,
            display_name=display_name,
            rank=rank_info,
            deduplication_id=f"level_up:{user_id}:{rank_info.id}",
        )
        await self._publish(message.model_dump(), group_id=f"user-{user_id}")

    async def notify_order_status_change(self, user_id: int, order_info: OrderStatusChanged) -> None:
        message = OrderStatusNotification(
            user_id=user_id,
            telegram_id=order_info.telegram_id,
            order_id=order_info.order_id,
            item_name=order_info.item_name,
            points_spent=order_info.points_spent,
            status=order_info.status,
            delivery_info=order_info.delivery_info,
            deduplication_id=f"order:{order_info.order_id}:{order_info.status}",
        )
        await self._publish(message.model_dump(), group_id=f"user-{user_id}")
