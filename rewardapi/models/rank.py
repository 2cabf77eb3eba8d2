from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from rewardapi.models.base import BaseModel


class Rank(BaseModel):
    """XP 기준 랭크 - min_xp 는 고유하며 오름차순으로 랭크 순서를 결정"""

    __tablename__ = "ranks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    icon: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    color: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    min_xp: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    # 최초 승급 시 1회 지급되는 보너스 포인트
    points_reward: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
