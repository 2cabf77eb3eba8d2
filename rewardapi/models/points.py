"""
포인트 시스템 데이터 모델

이 파일은 사용자 포인트의 모든 거래 내역을 저장하는 원장(Ledger) 테이블을 정의합니다.
포인트의 추가/차감은 모두 이 테이블에 기록되어 완전한 감사 추적(Audit Trail)을 제공합니다.
"""

import enum
from typing import Optional

from sqlalchemy import BigInteger, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rewardapi.models.base import Base, TimestampMixin


class PointHistoryType(str, enum.Enum):
    MESSAGE_REWARD = "message_reward"
    WHEEL_WIN = "wheel_win"
    SHOP_PURCHASE = "shop_purchase"
    REFUND = "refund"
    PROMOCODE = "promocode"
    RANK_UP = "rank_up"
    GAME_REFUND = "game_refund"
    ADMIN_ADJUSTMENT = "admin_adjustment"


class PointHistory(Base, TimestampMixin):
    """
    포인트 원장 테이블 - 모든 포인트 거래 내역을 저장

    이 테이블은 다음 원칙을 따릅니다:
    1. 불변성(Immutable): 한번 생성된 레코드는 수정/삭제되지 않음
    2. 완전성(Complete): 모든 포인트 변동사항이 기록됨
    3. 정합성(Integrity): 사용자별 amount 누적합 == users.points

    balance_before/balance_after 는 트랜잭션 안에서 새로 읽은 잔액으로 계산됩니다.
    """

    __tablename__ = "point_history"
    __table_args__ = (
        Index("idx_point_history_user", "user_id", "id"),
    )

    # 기본 키 - 자동 증가하는 고유 식별자 (사용자별 커밋 순서)
    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)

    # 포인트 변동량 - 양수면 증가, 음수면 감소
    amount: Mapped[int] = mapped_column(Integer, nullable=False)

    type: Mapped[PointHistoryType] = mapped_column(
        Enum(
            PointHistoryType,
            native_enum=False,
            length=32,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )

    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # 관련 엔티티 ID (휠 스핀, 구매, 프로모코드 사용, 랭크 등)
    related_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    balance_before: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)
