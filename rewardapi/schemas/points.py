from pydantic import BaseModel, Field
from typing import List, Optional

from rewardapi.models.points import PointHistoryType


class LedgerEntryInput(BaseModel):
    """원장 기록 요청 - BalanceLedger.apply_delta 에 전달"""

    type: PointHistoryType = Field(..., description="거래 유형")
    description: str = Field("", description="거래 설명")
    related_id: Optional[str] = Field(None, description="관련 엔티티 ID")


class BalanceSnapshot(BaseModel):
    """원장 적용 후 잔액"""

    user_id: int = Field(..., description="사용자 ID")
    points: int = Field(..., description="현재 포인트")
    xp: int = Field(..., description="현재 XP")
    history_id: Optional[int] = Field(None, description="생성된 원장 항목 ID")


class PointsBalanceResponse(BaseModel):
    """포인트 잔액 응답"""

    balance: int = Field(..., description="현재 포인트 잔액")
    xp: int = Field(..., description="현재 XP")
    rank_id: Optional[int] = Field(None, description="현재 랭크 ID")

    class Config:
        from_attributes = True


class PointHistoryEntry(BaseModel):
    """포인트 원장 항목"""

    id: int = Field(..., description="원장 항목 ID")
    amount: int = Field(..., description="포인트 변화량")
    type: PointHistoryType = Field(..., description="거래 유형")
    description: str = Field(..., description="거래 설명")
    related_id: Optional[str] = Field(None, description="관련 엔티티 ID")
    balance_before: int = Field(..., description="거래 전 잔액")
    balance_after: int = Field(..., description="거래 후 잔액")
    created_at: Optional[str] = Field(None, description="생성 시간")

    class Config:
        from_attributes = True


class PointHistoryResponse(BaseModel):
    """포인트 원장 조회 응답"""

    balance: int = Field(..., description="현재 잔액")
    entries: List[PointHistoryEntry] = Field(..., description="원장 항목 목록")
    total_count: int = Field(..., description="전체 항목 수")
    has_next: bool = Field(..., description="다음 페이지 존재 여부")


class AdminPointsAdjustmentRequest(BaseModel):
    """관리자 포인트 조정 요청"""

    user_id: int = Field(..., gt=0, description="사용자 ID")
    amount: int = Field(..., description="조정할 포인트 (양수: 추가, 음수: 차감)")
    reason: str = Field(..., min_length=1, max_length=255, description="조정 사유")


class PointsIntegrityCheckResponse(BaseModel):
    """포인트 정합성 검증 응답"""

    status: str = Field(..., description="검증 상태 (OK, MISMATCH)")
    user_id: Optional[int] = Field(None, description="사용자 ID (단일 사용자 검증 시)")
    calculated_balance: Optional[int] = Field(None, description="원장 재생으로 계산된 잔액")
    recorded_balance: Optional[int] = Field(None, description="users.points 에 기록된 잔액")
    total_points: Optional[int] = Field(None, description="전체 사용자 포인트 합계")
    total_amounts: Optional[int] = Field(None, description="전체 원장 amount 합계")
    entry_count: Optional[int] = Field(None, description="항목 수")
    error: Optional[str] = Field(None, description="오류 메시지")
    entry_id: Optional[int] = Field(None, description="오류 발생 항목 ID")
    verified_at: Optional[str] = Field(None, description="검증 시간")
