"""
트랜잭션 경계 - 모든 잔액 변경 작업은 이 모듈을 통해 하나의 트랜잭션으로 실행됩니다.

1. run_in_transaction: 트랜잭션 열기 → 작업 실행 → 커밋 (예외 시 전체 롤백)
2. revalidated_transaction: 트랜잭션 밖 사전 검증(빠른 실패) 후
   트랜잭션 안에서 최신 행을 다시 읽어 동일한 검증을 반복한 뒤 변경 적용

타임아웃/락 대기 초과/직렬화 실패는 TryAgainError 로 변환되며 부분 적용은 없습니다.
"""

import logging
from typing import Callable, Optional, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import Session

from rewardapi.core.exceptions import TryAgainError

logger = logging.getLogger(__name__)

T = TypeVar("T")
S = TypeVar("S")

# PostgreSQL SQLSTATE: query_canceled, lock_not_available, serialization_failure, deadlock_detected
_TRANSIENT_PGCODES = {"57014", "55P03", "40001", "40P01"}
_TRANSIENT_MESSAGES = ("database is locked", "database table is locked")


def _is_transient(exc: DBAPIError) -> bool:
    pgcode = getattr(exc.orig, "pgcode", None)
    if pgcode in _TRANSIENT_PGCODES:
        return True
    message = str(exc.orig).lower()
    return any(fragment in message for fragment in _TRANSIENT_MESSAGES)


def _apply_timeout(db: Session, timeout_ms: Optional[int]) -> None:
    if not timeout_ms:
        return
    if db.get_bind().dialect.name != "postgresql":
        return
    # SET LOCAL: 현재 트랜잭션에만 적용
    db.execute(text(f"SET LOCAL statement_timeout = {int(timeout_ms)}"))
    db.execute(text(f"SET LOCAL lock_timeout = {int(timeout_ms)}"))


def run_in_transaction(
    db: Session, work: Callable[[Session], T], timeout_ms: Optional[int] = None
) -> T:
    """work(db) 를 단일 트랜잭션으로 실행하고 커밋합니다.

    Args:
        db: 요청 범위 세션
        work: 트랜잭션 안에서 실행할 함수. 커밋/롤백을 직접 하지 않습니다.
        timeout_ms: 문장/락 대기 타임아웃 (PostgreSQL)

    Raises:
        TryAgainError: 타임아웃, 락 대기 초과, 교착, 직렬화 실패
    """
    # 사전 검증 조회 등으로 열린 autobegin 트랜잭션 정리
    if db.in_transaction():
        db.rollback()

    try:
        with db.begin():
            _apply_timeout(db, timeout_ms)
            return work(db)
    except OperationalError as e:
        if _is_transient(e):
            logger.warning(f"Transient database failure, rolled back: {e.orig}")
            raise TryAgainError(details={"reason": str(e.orig)}) from e
        raise


def revalidated_transaction(
    db: Session,
    load: Callable[[Session, bool], S],
    check: Callable[[S], None],
    apply: Callable[[Session, S], T],
    timeout_ms: Optional[int] = None,
) -> T:
    """사전 검증 → 트랜잭션 → 재검증 → 변경의 공통 흐름

    Args:
        load: (세션, for_update) → 검증 대상 상태. for_update=True 이면 행 잠금과 함께 최신 값 조회
        check: 상태 검증. 실패 시 타입 있는 예외를 발생시킵니다.
        apply: 검증을 통과한 상태로 변경을 수행하고 결과를 반환합니다.
    """
    # 1) 트랜잭션 밖 사전 검증 (빠른 실패, 변경 없음)
    try:
        check(load(db, False))
    finally:
        # 사전 검증용 읽기 트랜잭션은 바로 종료 (락 유지 방지)
        if db.in_transaction():
            db.rollback()

    # 2) 트랜잭션 안에서 최신 값으로 재검증 후 변경
    def _work(session: Session) -> T:
        state = load(session, True)
        check(state)
        return apply(session, state)

    return run_in_transaction(db, _work, timeout_ms)
