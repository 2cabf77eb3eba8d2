import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.schema import UniqueConstraint

from rewardapi.models.base import BaseModel


class ShopCategory(str, enum.Enum):
    GENERAL = "general"
    CASH = "cash"  # TRC20 지갑 주소 필요
    SPONSOR = "sponsor"  # 스폰서 식별자 필요


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Sponsor(BaseModel):
    __tablename__ = "sponsors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    # 사용자에게 요구하는 식별자 종류 (예: username, id, email)
    identifier_type: Mapped[str] = mapped_column(String(32), nullable=False, default="username")


class UserSponsorInfo(BaseModel):
    __tablename__ = "user_sponsor_infos"
    __table_args__ = (
        UniqueConstraint("user_id", "sponsor_id", name="uq_user_sponsor_info"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    sponsor_id: Mapped[int] = mapped_column(ForeignKey("sponsors.id"), nullable=False)
    identifier: Mapped[str] = mapped_column(Text, nullable=False)


class ShopItem(BaseModel):
    __tablename__ = "shop_items"
    __table_args__ = (
        CheckConstraint("stock IS NULL OR stock >= 0", name="stock_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    category: Mapped[ShopCategory] = mapped_column(
        Enum(
            ShopCategory,
            native_enum=False,
            length=16,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=ShopCategory.GENERAL,
    )
    sponsor_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("sponsors.id"), nullable=True
    )
    # NULL = 무제한
    stock: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    purchase_limit: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    sponsor: Mapped[Optional[Sponsor]] = relationship(lazy="joined")


class UserPurchase(BaseModel):
    __tablename__ = "user_purchases"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    item_id: Mapped[int] = mapped_column(ForeignKey("shop_items.id"), nullable=False)
    points_spent: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[OrderStatus] = mapped_column(
        Enum(
            OrderStatus,
            native_enum=False,
            length=16,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=OrderStatus.PENDING,
    )
    wallet_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sponsor_info: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    delivery_info: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    processed_by: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    purchased_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    item: Mapped[ShopItem] = relationship(lazy="joined")
