from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.schema import UniqueConstraint

from rewardapi.models.base import BaseModel


class Promocode(BaseModel):
    __tablename__ = "promocodes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # 대문자로 정규화되어 저장됨
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    max_uses: Mapped[int] = mapped_column(Integer, nullable=False)
    used_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class PromocodeUsage(BaseModel):
    """프로모코드 사용 사실 - (promocode_id, user_id) 유니크 제약이 1인 1회 사용의 최종 보장"""

    __tablename__ = "promocode_usages"
    __table_args__ = (
        UniqueConstraint("promocode_id", "user_id", name="uq_promocode_usage_user"),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    promocode_id: Mapped[int] = mapped_column(
        ForeignKey("promocodes.id"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    points_earned: Mapped[int] = mapped_column(Integer, nullable=False)
