from pydantic import BaseModel, Field
from typing import Optional

from rewardapi.models.shop import OrderStatus


class PurchaseRequest(BaseModel):
    """상품 구매 요청"""

    item_id: int = Field(..., gt=0, description="상품 ID")
    wallet_address: Optional[str] = Field(None, description="TRC20 지갑 주소 (현금 상품)")
    sponsor_info: Optional[str] = Field(None, description="스폰서 식별자 (스폰서 상품)")


class PurchaseResult(BaseModel):
    """상품 구매 결과"""

    success: bool = True
    purchase_id: int
    item_id: int
    item_name: str
    points_spent: int
    new_balance: int
    remaining_stock: Optional[int] = Field(None, description="남은 재고 (NULL = 무제한)")
    wallet_address: Optional[str] = None
    sponsor_info: Optional[str] = None


class OrderStatusUpdateRequest(BaseModel):
    """주문 상태 변경 요청 (관리자)"""

    status: Optional[OrderStatus] = None
    delivery_info: Optional[str] = None


class OrderStatusResult(BaseModel):
    order_id: int
    user_id: int
    item_name: str
    previous_status: OrderStatus
    status: OrderStatus
    points_refunded: int = 0
    new_balance: Optional[int] = None
