from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Path

from rewardapi.containers import Container
from rewardapi.core.security import require_admin, verify_token
from rewardapi.deps import get_shop_service
from rewardapi.schemas.shop import (
    OrderStatusResult,
    OrderStatusUpdateRequest,
    PurchaseRequest,
    PurchaseResult,
)
from rewardapi.services.event_dispatcher import EventDispatcher
from rewardapi.services.shop_service import ShopService

router = APIRouter(prefix="/shop", tags=["shop"])


@router.post("/purchase", response_model=PurchaseResult)
@inject
async def purchase_item(
    request: PurchaseRequest,
    user_id: int = Depends(verify_token),
    shop_service: ShopService = Depends(get_shop_service),
    dispatcher: EventDispatcher = Depends(Provide[Container.services.event_dispatcher]),
) -> PurchaseResult:
    """상품 구매"""
    outcome = shop_service.purchase(user_id, request)
    await dispatcher.dispatch(outcome.events)
    return outcome.result


@router.put("/admin/orders/{order_id}", response_model=OrderStatusResult)
@inject
async def update_order_status(
    request: OrderStatusUpdateRequest,
    order_id: int = Path(..., gt=0),
    admin_id: int = Depends(require_admin),
    shop_service: ShopService = Depends(get_shop_service),
    dispatcher: EventDispatcher = Depends(Provide[Container.services.event_dispatcher]),
) -> OrderStatusResult:
    """주문 상태 변경 (취소 시 1회 환불)"""
    outcome = shop_service.update_order_status(order_id, request, admin_id)
    await dispatcher.dispatch(outcome.events)
    return outcome.result
