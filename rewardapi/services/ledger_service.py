"""
잔액 원장 서비스 (BalanceLedger)

포인트/XP 를 변경하는 유일한 경로입니다. apply_delta 는 호출자의 트랜잭션 안에서
실행되며 직접 커밋하지 않습니다. 사용자 행을 FOR UPDATE 로 다시 읽은 최신 잔액을
기준으로 검증하고, 포인트 변동마다 정확히 하나의 원장 항목을 추가합니다.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from rewardapi.core.exceptions import (
    InsufficientBalanceError,
    UserNotFoundError,
    ValidationError,
)
from rewardapi.database.transaction import run_in_transaction
from rewardapi.models.points import PointHistory, PointHistoryType
from rewardapi.repositories.points_repository import PointHistoryRepository
from rewardapi.repositories.user_repository import UserRepository
from rewardapi.schemas.points import (
    BalanceSnapshot,
    LedgerEntryInput,
    PointHistoryResponse,
    PointsBalanceResponse,
    PointsIntegrityCheckResponse,
)
from rewardapi.utils.timezone_utils import utc_now

logger = logging.getLogger(__name__)

MAX_HISTORY_PAGE = 100


class BalanceLedger:
    """포인트 원장 - 잔액 변경과 감사 추적을 함께 기록"""

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository(db)
        self.history_repo = PointHistoryRepository(db)

    def apply_delta(
        self,
        user_id: int,
        points_delta: int,
        xp_delta: int,
        entry: LedgerEntryInput,
    ) -> BalanceSnapshot:
        """잔액 변경 (호출자 트랜잭션 안에서만 호출)

        Args:
            user_id: 사용자 ID
            points_delta: 포인트 변화량 (음수 = 차감)
            xp_delta: XP 증가량 (음수 불가)
            entry: 원장 기록 정보

        Returns:
            BalanceSnapshot: 변경 후 잔액

        Raises:
            UserNotFoundError: 사용자가 없음
            InsufficientBalanceError: 차감 후 잔액이 음수
        """
        if xp_delta < 0:
            raise ValidationError(
                "XP cannot decrease", details={"xp_delta": xp_delta}
            )

        user = self.user_repo.lock(user_id)
        if user is None:
            raise UserNotFoundError(details={"user_id": user_id})

        balance_before = user.points
        balance_after = balance_before + points_delta
        if balance_after < 0:
            raise InsufficientBalanceError(
                details={
                    "user_id": user_id,
                    "balance": balance_before,
                    "required": -points_delta,
                }
            )

        user.points = balance_after
        user.xp = user.xp + xp_delta

        history_id = None
        if points_delta != 0:
            history = self.history_repo.append(
                PointHistory(
                    user_id=user_id,
                    amount=points_delta,
                    type=entry.type,
                    description=entry.description,
                    related_id=entry.related_id,
                    balance_before=balance_before,
                    balance_after=balance_after,
                )
            )
            history_id = history.id

        self.db.flush()
        logger.debug(
            f"Ledger applied for user {user_id}: {entry.type.value} "
            f"points {points_delta:+d} ({balance_before} -> {balance_after}), xp {xp_delta:+d}"
        )
        return BalanceSnapshot(
            user_id=user_id, points=user.points, xp=user.xp, history_id=history_id
        )

    # ==================== 조회 ====================

    def get_balance(self, user_id: int) -> PointsBalanceResponse:
        balance = self.user_repo.get_balance(user_id)
        if balance is None:
            raise UserNotFoundError(details={"user_id": user_id})
        return balance

    def get_history(
        self, user_id: int, limit: int = 50, offset: int = 0
    ) -> PointHistoryResponse:
        """사용자 원장 조회 (최신순, 최대 100개)"""
        limit = max(1, min(limit, MAX_HISTORY_PAGE))
        offset = max(0, offset)

        balance = self.get_balance(user_id)
        entries = self.history_repo.get_user_history(user_id, limit=limit, offset=offset)
        total_count = self.history_repo.count_for_user(user_id)

        return PointHistoryResponse(
            balance=balance.balance,
            entries=entries,
            total_count=total_count,
            has_next=offset + len(entries) < total_count,
        )

    # ==================== 정합성 검증 ====================

    def verify_user_integrity(self, user_id: int) -> PointsIntegrityCheckResponse:
        """사용자 원장을 생성 순서대로 재생하여 users.points 와 비교

        각 항목에 대해 balance_before + amount == balance_after 이고
        누적합 == balance_after 인지 확인합니다.
        """
        user = self.user_repo.get(user_id)
        if user is None:
            raise UserNotFoundError(details={"user_id": user_id})

        running = 0
        entries = self.history_repo.replay_for_user(user_id)
        verified_at = utc_now().isoformat()

        for row in entries:
            if row.balance_before + row.amount != row.balance_after:
                return self._mismatch(
                    user_id, running, user.points, len(entries), row.id, verified_at,
                    f"Entry {row.id}: balance_before + amount != balance_after",
                )
            running += row.amount
            if running != row.balance_after:
                return self._mismatch(
                    user_id, running, user.points, len(entries), row.id, verified_at,
                    f"Entry {row.id}: running total {running} != balance_after {row.balance_after}",
                )

        if running != user.points:
            return self._mismatch(
                user_id, running, user.points, len(entries), None, verified_at,
                f"Replayed balance {running} != recorded balance {user.points}",
            )

        return PointsIntegrityCheckResponse(
            status="OK",
            user_id=user_id,
            calculated_balance=running,
            recorded_balance=user.points,
            entry_count=len(entries),
            verified_at=verified_at,
        )

    def _mismatch(
        self,
        user_id: int,
        calculated: int,
        recorded: int,
        entry_count: int,
        entry_id: Optional[int],
        verified_at: str,
        error: str,
    ) -> PointsIntegrityCheckResponse:
        logger.warning(f"Points integrity mismatch for user {user_id}: {error}")
        return PointsIntegrityCheckResponse(
            status="MISMATCH",
            user_id=user_id,
            calculated_balance=calculated,
            recorded_balance=recorded,
            entry_count=entry_count,
            entry_id=entry_id,
            error=error,
            verified_at=verified_at,
        )

    def verify_global_integrity(self) -> PointsIntegrityCheckResponse:
        """전체 원장 amount 합계 == 전체 사용자 포인트 합계"""
        total_amounts = self.history_repo.total_amounts()
        total_points = self.history_repo.total_user_points()
        entry_count = self.history_repo.total_entries()
        ok = total_amounts == total_points

        if not ok:
            logger.warning(
                f"Global points integrity mismatch: ledger={total_amounts}, users={total_points}"
            )

        return PointsIntegrityCheckResponse(
            status="OK" if ok else "MISMATCH",
            total_points=total_points,
            total_amounts=total_amounts,
            entry_count=entry_count,
            error=None if ok else "Sum of ledger amounts does not match sum of user points",
            verified_at=utc_now().isoformat(),
        )

    # ==================== 관리자 ====================

    def admin_adjust(
        self,
        user_id: int,
        amount: int,
        reason: str,
        admin_id: int,
        timeout_ms: Optional[int] = None,
    ) -> BalanceSnapshot:
        """관리자 포인트 조정 (자체 트랜잭션)"""
        if amount == 0:
            raise ValidationError("Adjustment amount must not be zero")

        entry = LedgerEntryInput(
            type=PointHistoryType.ADMIN_ADJUSTMENT,
            description=f"Admin adjustment: {reason}",
            related_id=str(admin_id),
        )
        snapshot = run_in_transaction(
            self.db,
            lambda session: self.apply_delta(user_id, amount, 0, entry),
            timeout_ms,
        )
        logger.info(
            f"Admin {admin_id} adjusted user {user_id} by {amount:+d}: {reason}"
        )
        return snapshot
