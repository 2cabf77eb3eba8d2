from pydantic import BaseModel, Field
from typing import Optional

from rewardapi.schemas.rank import RankChange


class TelegramMessageRequest(BaseModel):
    """봇 워커가 전달하는 그룹 메시지"""

    telegram_id: str = Field(..., min_length=1, description="텔레그램 사용자 ID")
    text: str = Field("", description="메시지 본문")
    chat_id: Optional[int] = Field(None, description="채팅 ID")
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class MessageRewardResult(BaseModel):
    """메시지 보상 결과"""

    success: bool = True
    points_added: int
    xp_added: int
    new_balance: int
    new_xp: int
    message_count: int
    rank_change: Optional[RankChange] = None
