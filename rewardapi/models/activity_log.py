from typing import Optional

from sqlalchemy import JSON, BigInteger, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rewardapi.models.base import Base, TimestampMixin


class UserActivityLog(Base, TimestampMixin):
    """사용자 활동 감사 로그 - 추가만 가능, 삭제하지 않음"""

    __tablename__ = "user_activity_logs"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    action_type: Mapped[str] = mapped_column(String(50), nullable=False)
    action_title: Mapped[str] = mapped_column(Text, nullable=False)
    action_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    related_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    related_type: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    # "metadata" 는 Declarative 예약어라 속성명만 다르게 둠
    extra: Mapped[Optional[dict]] = mapped_column("metadata", JSON, nullable=True)
