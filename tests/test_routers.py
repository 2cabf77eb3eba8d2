from fastapi.testclient import TestClient

from rewardapi.core.security import verify_internal_token, verify_token
from rewardapi.models.points import PointHistory, PointHistoryType
from rewardapi.models.promocode import Promocode
from rewardapi.models.shop import ShopItem
from rewardapi.models.telegram import TelegramGroupUser
from rewardapi.models.user import User
from rewardapi.models.wheel import WheelPrize
from rewardapi.utils.timezone_utils import utc_now


def dispatched_kinds(app):
    events = app.state.dispatcher.dispatch.await_args.args[0]
    return [e.kind for e in events]


class TestHealthRouter:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["database"] is True


class TestPointRouter:
    """포인트 API 테스트"""

    def test_balance_and_history(self, client, current_user, make_user, seed):
        user = make_user(points=70, xp=3)
        seed(
            PointHistory(user_id=user.id, amount=100, type=PointHistoryType.PROMOCODE, description="", balance_before=0, balance_after=100),
            PointHistory(user_id=user.id, amount=-30, type=PointHistoryType.SHOP_PURCHASE, description="", balance_before=100, balance_after=70),
        )
        current_user["user_id"] = user.id

        balance = client.get("/points/balance").json()
        history = client.get("/points/history", params={"limit": 1}).json()

        assert balance == {"balance": 70, "xp": 3, "rank_id": None}
        assert history["total_count"] == 2
        assert history["has_next"] is True
        assert history["entries"][0]["amount"] == -30

    def test_history_limit_validated(self, client, current_user, make_user):
        current_user["user_id"] = make_user().id

        response = client.get("/points/history", params={"limit": 500})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_001"

    def test_admin_adjust_dispatches_invalidation(self, client, app, make_user, fetch):
        user = make_user(points=10)

        response = client.post(
            "/points/admin/adjust",
            json={"user_id": user.id, "amount": 40, "reason": "support ticket"},
        )

        assert response.status_code == 200
        assert response.json()["points"] == 50
        assert fetch(User, user.id).points == 50
        assert dispatched_kinds(app) == ["leaderboard_invalidated", "user_invalidated"]

    def test_admin_adjust_overdraft(self, client, app, make_user):
        user = make_user(points=10)

        response = client.post(
            "/points/admin/adjust",
            json={"user_id": user.id, "amount": -40, "reason": "chargeback"},
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "INSUFFICIENT_BALANCE"
        assert error["details"]["balance"] == 10
        assert error["details"]["required"] == 40
        app.state.dispatcher.dispatch.assert_not_awaited()

    def test_integrity_endpoints(self, client, current_user, make_user):
        current_user["user_id"] = make_user().id

        assert client.get("/points/integrity/my").json()["status"] == "OK"
        assert client.get("/points/admin/integrity/global").json()["status"] == "OK"


class TestWheelRouter:
    def test_spin_resets_daily_quota_first(self, client, app, current_user, seed, make_user, fetch, economy):
        seed(WheelPrize(name="100 Points", points=100, probability=1.0, order=1))
        user = make_user(daily_spins_left=0)
        current_user["user_id"] = user.id

        response = client.post("/wheel/spin")

        assert response.status_code == 200
        body = response.json()
        assert body["points_won"] == 100
        assert body["daily_spins_left"] == economy.daily_wheel_spins - 1
        assert fetch(User, user.id).points == 100
        assert "activity_logged" in dispatched_kinds(app)

    def test_no_spins_left(self, client, current_user, seed, make_user):
        seed(WheelPrize(name="100 Points", points=100, probability=1.0))
        user = make_user(daily_spins_left=0, last_spin_reset=utc_now())
        current_user["user_id"] = user.id

        response = client.post("/wheel/spin")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "NO_SPINS_LEFT"

    def test_prizes_public(self, client, seed):
        seed(WheelPrize(name="A", points=1, probability=1.0, order=2), WheelPrize(name="B", points=2, probability=1.0, order=1))

        body = client.get("/wheel/prizes").json()

        assert [p["name"] for p in body["prizes"]] == ["B", "A"]


class TestShopRouter:
    def test_purchase_out_of_stock(self, client, current_user, seed, make_user):
        item = seed(ShopItem(name="Gone", price=10, stock=0))
        current_user["user_id"] = make_user(points=100).id

        response = client.post("/shop/purchase", json={"item_id": item.id})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "OUT_OF_STOCK"

    def test_purchase_and_cancel(self, client, app, current_user, seed, make_user, fetch):
        item = seed(ShopItem(name="Mug", price=30, stock=2))
        user = make_user(points=100)
        current_user["user_id"] = user.id

        purchase = client.post("/shop/purchase", json={"item_id": item.id}).json()
        cancelled = client.put(
            f"/shop/admin/orders/{purchase['purchase_id']}", json={"status": "cancelled"}
        ).json()

        assert purchase["new_balance"] == 70
        assert cancelled["points_refunded"] == 30
        assert fetch(User, user.id).points == 100
        assert "order_status_changed" in dispatched_kinds(app)


class TestPromocodeRouter:
    def test_redeem(self, client, current_user, seed, make_user):
        seed(Promocode(code="HELLO", points=15, max_uses=5))
        current_user["user_id"] = make_user().id

        response = client.post("/promocodes/redeem", json={"code": "hello"})

        assert response.status_code == 200
        assert response.json()["points_earned"] == 15

    def test_already_used(self, client, current_user, seed, make_user):
        seed(Promocode(code="HELLO", points=15, max_uses=5))
        current_user["user_id"] = make_user().id
        client.post("/promocodes/redeem", json={"code": "HELLO"})

        response = client.post("/promocodes/redeem", json={"code": "HELLO"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "ALREADY_USED"


class TestTelegramRouter:
    def test_message_reward(self, client, seed, make_user, economy):
        user = make_user(telegram_id="tg-5")
        seed(TelegramGroupUser(telegram_id="tg-5", linked_user_id=user.id))

        response = client.post("/telegram/messages", json={"telegram_id": "tg-5", "text": "good morning"})

        assert response.status_code == 200
        assert response.json()["points_added"] == economy.points_per_message

    def test_cooldown_returns_429(self, client, seed, make_user):
        user = make_user(telegram_id="tg-5")
        seed(TelegramGroupUser(telegram_id="tg-5", linked_user_id=user.id))
        client.post("/telegram/messages", json={"telegram_id": "tg-5", "text": "good morning"})

        response = client.post("/telegram/messages", json={"telegram_id": "tg-5", "text": "again here"})

        assert response.status_code == 429
        error = response.json()["error"]
        assert error["code"] == "COOLDOWN_ACTIVE"
        assert error["details"]["remaining_seconds"] > 0
        assert int(response.headers["Retry-After"]) == error["details"]["remaining_seconds"]


class TestAuthentication:
    def test_missing_bearer_token(self, app):
        app.dependency_overrides.pop(verify_token)

        with TestClient(app) as client:
            response = client.get("/points/balance")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTH_001"

    def test_invalid_bearer_token(self, app):
        app.dependency_overrides.pop(verify_token)

        with TestClient(app) as client:
            response = client.get("/points/balance", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    def test_internal_token_required(self, app):
        app.dependency_overrides.pop(verify_internal_token)

        with TestClient(app) as client:
            response = client.post("/telegram/messages", json={"telegram_id": "1", "text": "hello"})

        assert response.status_code == 401
