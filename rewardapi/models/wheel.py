from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Boolean, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rewardapi.models.base import BaseModel


class WheelPrize(BaseModel):
    """휠 상품 - probability 는 가중치 (합이 1일 필요 없음)"""

    __tablename__ = "wheel_prizes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    probability: Mapped[float] = mapped_column(Float, nullable=False)
    color: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class WheelSpin(BaseModel):
    __tablename__ = "wheel_spins"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    prize_id: Mapped[int] = mapped_column(ForeignKey("wheel_prizes.id"), nullable=False)
    points_won: Mapped[int] = mapped_column(Integer, nullable=False)
    spun_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    prize: Mapped[WheelPrize] = relationship(lazy="joined")
