"""
쿨다운 게이트 / 시도 제한

경제 트랜잭션 "밖"에서 사용되는 베스트 에포트 제한입니다. 저장소(redis) 장애 시
제한을 통과시키며(fail-open) 트랜잭션 안의 검증을 대체하지 않습니다.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Tuple

from rewardapi.services.redis_service import RedisService

logger = logging.getLogger(__name__)


def message_cooldown_key(telegram_id: str) -> str:
    return f"cooldown:message:{telegram_id}"


def promocode_attempt_key(user_id: int) -> str:
    return f"throttle:promocode:{user_id}"


class CooldownGate(ABC):
    @abstractmethod
    async def check_remaining(self, key: str) -> int:
        """남은 쿨다운(초). 0 이면 통과"""

    @abstractmethod
    async def set(self, key: str, window_seconds: int) -> None:
        """쿨다운 시작"""


class RedisCooldownGate(CooldownGate):
    """redis TTL / SET EX 기반 쿨다운"""

    def __init__(self, redis_service: RedisService):
        self.redis = redis_service

    async def check_remaining(self, key: str) -> int:
        return await self.redis.ttl(key)

    async def set(self, key: str, window_seconds: int) -> None:
        if window_seconds <= 0:
            return
        if not await self.redis.set(key, "1", window_seconds):
            logger.warning(f"Cooldown not recorded for {key} (redis unavailable)")


class InMemoryCooldownGate(CooldownGate):
    """프로세스 내 쿨다운 (테스트/단일 프로세스 용)"""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._expires: Dict[str, float] = {}

    async def check_remaining(self, key: str) -> int:
        expires_at = self._expires.get(key)
        if expires_at is None:
            return 0
        remaining = expires_at - self._clock()
        if remaining <= 0:
            self._expires.pop(key, None)
            return 0
        return max(1, int(remaining + 0.999))

    async def set(self, key: str, window_seconds: int) -> None:
        if window_seconds <= 0:
            return
        self._expires[key] = self._clock() + window_seconds


class AttemptThrottle(ABC):
    @abstractmethod
    async def hit(self, key: str, limit: int, window_seconds: int) -> int:
        """시도 1회 기록. 제한 초과 시 남은 대기 시간(초), 아니면 0"""


class RedisAttemptThrottle(AttemptThrottle):
    def __init__(self, redis_service: RedisService):
        self.redis = redis_service

    async def hit(self, key: str, limit: int, window_seconds: int) -> int:
        counted = await self.redis.incr_with_expiry(key, window_seconds)
        if counted is None:
            return 0
        count, ttl = counted
        if count > limit:
            return max(ttl, 1)
        return 0


class InMemoryAttemptThrottle(AttemptThrottle):
    """고정 윈도우 카운터"""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}

    async def hit(self, key: str, limit: int, window_seconds: int) -> int:
        now = self._clock()
        window_end, count = self._windows.get(key, (0.0, 0))
        if now >= window_end:
            window_end, count = now + window_seconds, 0
        count += 1
        self._windows[key] = (window_end, count)
        if count > limit:
            return max(1, int(window_end - now + 0.999))
        return 0
