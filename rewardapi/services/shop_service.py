"""
상점 구매 / 주문 상태 변경 정책

구매는 사전 검증(트랜잭션 밖) 후 트랜잭션 안에서 사용자/상품 행을 잠금과 함께
다시 읽어 동일한 검증을 반복하고, 포인트 차감 + 재고 차감 + 구매 기록을
한 번에 커밋합니다.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from rewardapi.config import EconomySettings
from rewardapi.core.exceptions import (
    InsufficientBalanceError,
    ItemInactiveError,
    ItemNotFoundError,
    MissingProfileFieldError,
    OrderAlreadyCancelledError,
    OrderNotFoundError,
    OutOfStockError,
    PurchaseLimitReachedError,
    UserNotFoundError,
)
from rewardapi.database.transaction import revalidated_transaction, run_in_transaction
from rewardapi.models.points import PointHistoryType
from rewardapi.models.shop import (
    OrderStatus,
    ShopCategory,
    ShopItem,
    UserPurchase,
    UserSponsorInfo,
)
from rewardapi.models.user import User
from rewardapi.repositories.shop_repository import ShopRepository
from rewardapi.repositories.user_repository import UserRepository
from rewardapi.schemas.events import (
    ActivityLogged,
    LeaderboardInvalidated,
    OrderStatusChanged,
    PolicyOutcome,
    UserInvalidated,
)
from rewardapi.schemas.points import LedgerEntryInput
from rewardapi.schemas.shop import (
    OrderStatusResult,
    OrderStatusUpdateRequest,
    PurchaseRequest,
    PurchaseResult,
)
from rewardapi.services.ledger_service import BalanceLedger
from rewardapi.utils.timezone_utils import utc_now

logger = logging.getLogger(__name__)


@dataclass
class _PurchaseState:
    user: Optional[User]
    item: Optional[ShopItem]
    purchase_count: int
    saved_sponsor_info: Optional[UserSponsorInfo]


class ShopService:
    """상점 서비스"""

    def __init__(
        self,
        db: Session,
        economy: EconomySettings,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.economy = economy
        self.clock = clock
        self.user_repo = UserRepository(db)
        self.shop_repo = ShopRepository(db)
        self.ledger = BalanceLedger(db)

    def _load_purchase_state(
        self, user_id: int, item_id: int, for_update: bool
    ) -> _PurchaseState:
        if for_update:
            user = self.user_repo.lock(user_id)
            item = self.shop_repo.lock(item_id)
        else:
            user = self.user_repo.get(user_id)
            item = self.shop_repo.get(item_id)

        saved_sponsor_info = None
        if item is not None and item.sponsor_id is not None:
            saved_sponsor_info = self.shop_repo.get_sponsor_info(user_id, item.sponsor_id)

        return _PurchaseState(
            user=user,
            item=item,
            purchase_count=self.shop_repo.count_user_purchases(user_id, item_id),
            saved_sponsor_info=saved_sponsor_info,
        )

    def _check_purchase(self, request: PurchaseRequest, user_id: int, state: _PurchaseState) -> None:
        user, item = state.user, state.item
        if user is None:
            raise UserNotFoundError(details={"user_id": user_id})
        if item is None:
            raise ItemNotFoundError(details={"item_id": request.item_id})
        if not item.is_active:
            raise ItemInactiveError(details={"item_id": item.id})

        if item.category == ShopCategory.CASH:
            if not (request.wallet_address or user.trc20_wallet_address):
                raise MissingProfileFieldError(
                    "A TRC20 wallet address is required for cash items",
                    details={"field": "trc20_wallet_address", "category": item.category.value},
                )

        if item.category == ShopCategory.SPONSOR and item.sponsor_id is not None:
            if not (request.sponsor_info or state.saved_sponsor_info):
                sponsor = item.sponsor
                raise MissingProfileFieldError(
                    "Sponsor information is required for this item",
                    details={
                        "field": "sponsor_info",
                        "category": item.category.value,
                        "sponsor_id": item.sponsor_id,
                        "sponsor_name": sponsor.name if sponsor else None,
                        "identifier_type": sponsor.identifier_type if sponsor else None,
                    },
                )

        if user.points < item.price:
            raise InsufficientBalanceError(
                details={"balance": user.points, "required": item.price}
            )

        if item.stock is not None and item.stock <= 0:
            raise OutOfStockError(details={"item_id": item.id})

        if item.purchase_limit is not None and state.purchase_count >= item.purchase_limit:
            raise PurchaseLimitReachedError(
                f"This item can be purchased at most {item.purchase_limit} times",
                details={"limit": item.purchase_limit},
            )

    def purchase(self, user_id: int, request: PurchaseRequest) -> PolicyOutcome[PurchaseResult]:
        """상품 구매

        Raises:
            UserNotFoundError, ItemNotFoundError, ItemInactiveError,
            MissingProfileFieldError, InsufficientBalanceError, OutOfStockError,
            PurchaseLimitReachedError, TryAgainError
        """
        now = self.clock()

        def load(session: Session, for_update: bool) -> _PurchaseState:
            return self._load_purchase_state(user_id, request.item_id, for_update)

        def check(state: _PurchaseState) -> None:
            self._check_purchase(request, user_id, state)

        def apply(session: Session, state: _PurchaseState) -> PurchaseResult:
            user, item = state.user, state.item

            wallet_address = None
            if item.category == ShopCategory.CASH:
                wallet_address = request.wallet_address or user.trc20_wallet_address

            sponsor_info = None
            if item.category == ShopCategory.SPONSOR and item.sponsor_id is not None:
                if request.sponsor_info:
                    sponsor_info = request.sponsor_info
                    self.shop_repo.save_sponsor_info(user_id, item.sponsor_id, sponsor_info)
                else:
                    sponsor_info = state.saved_sponsor_info.identifier

            purchase = self.shop_repo.create_purchase(
                UserPurchase(
                    user_id=user_id,
                    item_id=item.id,
                    points_spent=item.price,
                    status=OrderStatus.PENDING,
                    wallet_address=wallet_address,
                    sponsor_info=sponsor_info,
                    purchased_at=now,
                )
            )

            snapshot = self.ledger.apply_delta(
                user_id,
                -item.price,
                0,
                LedgerEntryInput(
                    type=PointHistoryType.SHOP_PURCHASE,
                    description=f"Purchased {item.name}",
                    related_id=str(purchase.id),
                ),
            )

            if item.stock is not None:
                item.stock -= 1
            session.flush()

            return PurchaseResult(
                purchase_id=purchase.id,
                item_id=item.id,
                item_name=item.name,
                points_spent=item.price,
                new_balance=snapshot.points,
                remaining_stock=item.stock,
                wallet_address=wallet_address,
                sponsor_info=sponsor_info,
            )

        try:
            result = revalidated_transaction(
                self.db, load, check, apply, self.economy.transaction_timeout_ms
            )
        except (InsufficientBalanceError, OutOfStockError, PurchaseLimitReachedError) as e:
            logger.info(
                f"Purchase of item {request.item_id} rejected for user {user_id}: {e.error_code}"
            )
            raise

        logger.info(
            f"User {user_id} purchased item {result.item_id} ({result.item_name}) "
            f"for {result.points_spent} points, purchase {result.purchase_id}"
        )
        events = [
            LeaderboardInvalidated(),
            UserInvalidated(user_id=user_id),
            ActivityLogged(
                user_id=user_id,
                action_type="purchase",
                action_title=f"Purchased {result.item_name}",
                action_description=f"-{result.points_spent} points",
                related_id=str(result.purchase_id),
                related_type="purchase",
                amounts={"points": -result.points_spent},
                metadata={
                    "item_id": result.item_id,
                    "wallet_address": result.wallet_address,
                    "sponsor_info": result.sponsor_info,
                },
            ),
        ]
        return PolicyOutcome(result=result, events=events)

    def update_order_status(
        self, order_id: int, request: OrderStatusUpdateRequest, admin_id: int
    ) -> PolicyOutcome[OrderStatusResult]:
        """주문 상태 변경 (관리자)

        취소되지 않은 주문을 cancelled 로 바꾸면 사용 포인트를 한 번만 환불하고
        재고가 관리되는 상품이면 재고를 1 복구합니다. 취소된 주문은 다른
        상태로 옮길 수 없습니다 (OrderAlreadyCancelledError).
        """
        now = self.clock()

        def _work(session: Session):
            order = self.shop_repo.lock_order(order_id)
            if order is None:
                raise OrderNotFoundError(details={"order_id": order_id})

            previous_status = order.status
            new_status = request.status or previous_status
            # 취소는 종료 상태
            if previous_status == OrderStatus.CANCELLED and new_status != OrderStatus.CANCELLED:
                raise OrderAlreadyCancelledError(
                    details={"order_id": order_id, "requested_status": new_status.value}
                )
            refunded = 0
            new_balance = None

            if (
                new_status == OrderStatus.CANCELLED
                and previous_status != OrderStatus.CANCELLED
            ):
                snapshot = self.ledger.apply_delta(
                    order.user_id,
                    order.points_spent,
                    0,
                    LedgerEntryInput(
                        type=PointHistoryType.REFUND,
                        description=f"Order cancelled: {order.item.name}",
                        related_id=str(order.id),
                    ),
                )
                refunded = order.points_spent
                new_balance = snapshot.points

                item = self.shop_repo.lock(order.item_id)
                if item is not None and item.stock is not None:
                    item.stock += 1

            order.status = new_status
            if request.delivery_info is not None:
                order.delivery_info = request.delivery_info
            order.processed_by = admin_id
            order.processed_at = now
            session.flush()

            user = self.user_repo.get(order.user_id)
            return order, user, previous_status, refunded, new_balance

        order, user, previous_status, refunded, new_balance = run_in_transaction(
            self.db, _work, self.economy.transaction_timeout_ms
        )

        result = OrderStatusResult(
            order_id=order.id,
            user_id=order.user_id,
            item_name=order.item.name,
            previous_status=previous_status,
            status=order.status,
            points_refunded=refunded,
            new_balance=new_balance,
        )
        logger.info(
            f"Admin {admin_id} moved order {order_id} {previous_status.value} -> {order.status.value}"
            + (f", refunded {refunded} points" if refunded else "")
        )

        events = []
        if refunded:
            events.extend([LeaderboardInvalidated(), UserInvalidated(user_id=order.user_id)])
        if previous_status != order.status:
            events.append(
                OrderStatusChanged(
                    user_id=order.user_id,
                    telegram_id=user.telegram_id if user else None,
                    order_id=order.id,
                    item_name=order.item.name,
                    points_spent=order.points_spent,
                    status=order.status.value,
                    delivery_info=order.delivery_info,
                )
            )
        return PolicyOutcome(result=result, events=events)
