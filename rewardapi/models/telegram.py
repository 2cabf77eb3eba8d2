from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from rewardapi.models.base import BaseModel


class TelegramGroupUser(BaseModel):
    """텔레그램 그룹 참여자 - 메시지 수 집계 (보상 지급 여부와 무관하게 항상 증가)"""

    __tablename__ = "telegram_group_users"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    telegram_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    linked_user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"), nullable=True
    )
    username: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    message_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    daily_message_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    weekly_message_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    monthly_message_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_message_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
