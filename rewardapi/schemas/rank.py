from pydantic import BaseModel, Field
from typing import Optional


class RankInfo(BaseModel):
    """레벨업 알림에 전달되는 랭크 정보"""

    id: int
    name: str
    icon: str = ""
    xp: int = Field(..., description="승급 시점의 XP")


class RankChange(BaseModel):
    """랭크 승급 결과"""

    previous_rank_id: Optional[int] = Field(None, description="이전 랭크 ID")
    rank_id: int = Field(..., description="새 랭크 ID")
    name: str = Field(..., description="새 랭크명")
    icon: str = Field("", description="새 랭크 아이콘")
    xp: int = Field(..., description="승급 시점의 XP")
    points_awarded: int = Field(0, description="지급된 승급 보너스 포인트")

    def to_rank_info(self) -> RankInfo:
        return RankInfo(id=self.rank_id, name=self.name, icon=self.icon, xp=self.xp)
