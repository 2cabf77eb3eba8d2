"""
포인트 API 라우터

사용자용 엔드포인트:
- GET /points/balance: 내 포인트 잔액 조회
- GET /points/history: 내 포인트 원장 (최신순)
- GET /points/integrity/my: 내 포인트 정합성 검증

관리자용 엔드포인트:
- POST /points/admin/adjust: 포인트 조정
- GET /points/admin/integrity/global: 전체 정합성 검증
"""

import logging

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Query

from rewardapi.containers import Container
from rewardapi.core.security import require_admin, verify_token
from rewardapi.deps import get_ledger
from rewardapi.schemas.events import LeaderboardInvalidated, UserInvalidated
from rewardapi.schemas.points import (
    AdminPointsAdjustmentRequest,
    BalanceSnapshot,
    PointHistoryResponse,
    PointsBalanceResponse,
    PointsIntegrityCheckResponse,
)
from rewardapi.services.event_dispatcher import EventDispatcher
from rewardapi.services.ledger_service import BalanceLedger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/points", tags=["points"])


@router.get("/balance", response_model=PointsBalanceResponse)
async def get_my_balance(
    user_id: int = Depends(verify_token),
    ledger: BalanceLedger = Depends(get_ledger),
) -> PointsBalanceResponse:
    """내 포인트 잔액 조회"""
    return ledger.get_balance(user_id)


@router.get("/history", response_model=PointHistoryResponse)
async def get_my_history(
    limit: int = Query(50, ge=1, le=100, description="페이지 크기"),
    offset: int = Query(0, ge=0, description="오프셋"),
    user_id: int = Depends(verify_token),
    ledger: BalanceLedger = Depends(get_ledger),
) -> PointHistoryResponse:
    """내 포인트 원장 조회 - 최신순 페이징"""
    return ledger.get_history(user_id, limit=limit, offset=offset)


@router.get("/integrity/my", response_model=PointsIntegrityCheckResponse)
async def verify_my_integrity(
    user_id: int = Depends(verify_token),
    ledger: BalanceLedger = Depends(get_ledger),
) -> PointsIntegrityCheckResponse:
    return ledger.verify_user_integrity(user_id)


@router.post("/admin/adjust", response_model=BalanceSnapshot)
@inject
async def admin_adjust_points(
    request: AdminPointsAdjustmentRequest,
    admin_id: int = Depends(require_admin),
    ledger: BalanceLedger = Depends(get_ledger),
    dispatcher: EventDispatcher = Depends(Provide[Container.services.event_dispatcher]),
) -> BalanceSnapshot:
    """관리자 포인트 조정 (양수: 지급, 음수: 차감)"""
    snapshot = ledger.admin_adjust(
        request.user_id, request.amount, request.reason, admin_id
    )
    await dispatcher.dispatch(
        [LeaderboardInvalidated(), UserInvalidated(user_id=request.user_id)]
    )
    return snapshot


@router.get("/admin/integrity/global", response_model=PointsIntegrityCheckResponse)
async def verify_global_integrity(
    admin_id: int = Depends(require_admin),
    ledger: BalanceLedger = Depends(get_ledger),
) -> PointsIntegrityCheckResponse:
    return ledger.verify_global_integrity()
