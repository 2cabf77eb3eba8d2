"""
커밋 이후 이벤트 디스패처

정책이 반환한 이벤트를 순서대로 싱크에 전달합니다. 각 이벤트는 개별 타임아웃을
가지며, 실패는 WARNING 으로 남기고 무시합니다 (요청 안에서 재시도하지 않음).
"""

import asyncio
import logging
import time
from typing import Callable, Iterable, Optional

from rewardapi.config import EconomySettings
from rewardapi.schemas.events import (
    ActivityLogged,
    LeaderboardInvalidated,
    LevelUp,
    OrderStatusChanged,
    PostCommitEvent,
    UserInvalidated,
)
from rewardapi.services.activity_log_service import ActivityLogService
from rewardapi.services.notification_sink import NotificationSink

logger = logging.getLogger(__name__)


class EventDispatcher:
    def __init__(
        self,
        sink: NotificationSink,
        economy: EconomySettings,
        activity_log: Optional[ActivityLogService] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.sink = sink
        self.economy = economy
        self.activity_log = activity_log
        self.clock = clock
        self._last_leaderboard_invalidation: Optional[float] = None

    def _should_invalidate_leaderboard(self, event: LeaderboardInvalidated) -> bool:
        if not event.throttled:
            return True
        now = self.clock()
        last = self._last_leaderboard_invalidation
        if last is not None and now - last < self.economy.leaderboard_invalidate_interval_seconds:
            return False
        self._last_leaderboard_invalidation = now
        return True

    async def _deliver(self, event: PostCommitEvent) -> None:
        if isinstance(event, LeaderboardInvalidated):
            if self._should_invalidate_leaderboard(event):
                await self.sink.invalidate_leaderboard()
        elif isinstance(event, UserInvalidated):
            await self.sink.invalidate_user(event.user_id)
        elif isinstance(event, LevelUp):
            await self.sink.notify_level_up(
                event.user_id,
                event.rank,
                telegram_id=event.telegram_id,
                display_name=event.display_name,
            )
        elif isinstance(event, OrderStatusChanged):
            await self.sink.notify_order_status_change(event.user_id, event)
        elif isinstance(event, ActivityLogged):
            if self.activity_log is not None:
                await asyncio.to_thread(self.activity_log.log_activity, event)
        else:
            logger.warning(f"Unknown post-commit event: {event!r}")

    async def dispatch(self, events: Iterable[PostCommitEvent]) -> int:
        """이벤트 전달. 실패한 이벤트 수를 반환"""
        failures = 0
        timeout = self.economy.side_effect_timeout_seconds
        for event in events:
            try:
                await asyncio.wait_for(self._deliver(event), timeout=timeout)
            except asyncio.TimeoutError:
                failures += 1
                logger.warning(f"Post-commit {event.kind} timed out after {timeout}s")
            except Exception as e:
                failures += 1
                logger.warning(f"Post-commit {event.kind} failed: {e}")
        return failures
