from pydantic import BaseModel, Field
from typing import List, Optional


class WheelPrizeItem(BaseModel):
    """휠 상품"""

    id: int
    name: str
    points: int
    color: Optional[str] = None
    order: int = 0

    class Config:
        from_attributes = True


class WheelPrizeListResponse(BaseModel):
    prizes: List[WheelPrizeItem]
    daily_spins: int = Field(..., description="일일 스핀 횟수")
    reset_time: str = Field(..., description="스핀 초기화 시각 (HH:MM)")


class WheelStreak(BaseModel):
    current: int = Field(..., description="연속 스핀 일수")
    is_first_spin_today: bool = Field(..., description="오늘 첫 스핀 여부")


class WheelSpinResult(BaseModel):
    """휠 스핀 결과"""

    success: bool = True
    prize: WheelPrizeItem
    prize_index: int = Field(..., description="활성 상품 목록에서의 위치")
    points_won: int
    new_balance: int
    daily_spins_left: int
    streak: WheelStreak
    spin_id: int


class RecentWinner(BaseModel):
    user_id: int
    display_name: str
    prize_name: str
    points_won: int
    spun_at: str


class SpinResetResult(BaseModel):
    daily_spins_left: int
    was_reset: bool
