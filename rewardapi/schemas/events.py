"""
커밋 이후 실행되는 부수효과 이벤트

보상 정책은 트랜잭션 안에서 외부 I/O 를 하지 않고 이벤트 목록만 반환합니다.
호출자(라우터)가 커밋 후 EventDispatcher 로 전달합니다.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, Field

from rewardapi.schemas.rank import RankInfo

T = TypeVar("T")


class LeaderboardInvalidated(BaseModel):
    kind: str = "leaderboard_invalidated"
    # True 이면 디스패처가 일정 간격으로만 실제 무효화를 수행
    throttled: bool = False


class UserInvalidated(BaseModel):
    kind: str = "user_invalidated"
    user_id: int


class LevelUp(BaseModel):
    kind: str = "level_up"
    user_id: int
    telegram_id: Optional[str] = None
    display_name: str
    rank: RankInfo


class OrderStatusChanged(BaseModel):
    kind: str = "order_status_changed"
    user_id: int
    telegram_id: Optional[str] = None
    order_id: int
    item_name: str
    points_spent: int
    status: str
    delivery_info: Optional[str] = None


class ActivityLogged(BaseModel):
    kind: str = "activity_logged"
    user_id: int
    action_type: str
    action_title: str
    action_description: Optional[str] = None
    related_id: Optional[str] = None
    related_type: Optional[str] = None
    amounts: Dict[str, int] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)


PostCommitEvent = Union[
    LeaderboardInvalidated, UserInvalidated, LevelUp, OrderStatusChanged, ActivityLogged
]


@dataclass
class PolicyOutcome(Generic[T]):
    """정책 실행 결과 - 커밋된 결과 값과 커밋 후 처리할 이벤트 목록"""

    result: T
    events: List[PostCommitEvent] = field(default_factory=list)
