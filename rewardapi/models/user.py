from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from rewardapi.models.base import BaseModel


class User(BaseModel):
    """
    사이트 사용자 - 잔액(points/xp)의 실체화된 뷰를 보유

    points/xp/rank_id/daily_spins_left 는 BalanceLedger, RankResolver,
    보상 정책들만 트랜잭션 안에서 변경합니다.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("points >= 0", name="points_non_negative"),
        CheckConstraint(
            "daily_spins_left >= 0", name="daily_spins_non_negative"
        ),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    site_username: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    telegram_id: Mapped[Optional[str]] = mapped_column(
        String(64), unique=True, nullable=True
    )
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    telegram_username: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # 잔액
    points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    xp: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    rank_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("ranks.id"), nullable=True
    )

    # 휠
    daily_spins_left: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_spin_reset: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_wheel_spin_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    weekly_wheel_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # 출금/스폰서 상품 구매에 필요한 프로필 정보
    trc20_wallet_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    is_banned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, points={self.points}, xp={self.xp})>"

    @property
    def display_name(self) -> str:
        return self.first_name or self.telegram_username or self.site_username or "User"
