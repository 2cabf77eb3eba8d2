import pytest

from rewardapi.core.exceptions import (
    InsufficientBalanceError,
    UserNotFoundError,
    ValidationError,
)
from rewardapi.database.transaction import run_in_transaction
from rewardapi.models.points import PointHistory, PointHistoryType
from rewardapi.models.user import User
from rewardapi.schemas.points import LedgerEntryInput
from rewardapi.services.ledger_service import BalanceLedger

from conftest import run_concurrently


def entry(type_=PointHistoryType.ADMIN_ADJUSTMENT, related_id=None):
    return LedgerEntryInput(type=type_, description="test", related_id=related_id)


def history_rows(session_factory, user_id):
    with session_factory() as session:
        return (
            session.query(PointHistory)
            .filter(PointHistory.user_id == user_id)
            .order_by(PointHistory.id)
            .all()
        )


class TestApplyDelta:
    """BalanceLedger.apply_delta 테스트"""

    def test_credit_updates_balance_and_appends_history(self, db, make_user, fetch, session_factory):
        # Given
        user = make_user(points=100, xp=10)
        ledger = BalanceLedger(db)

        # When
        snapshot = run_in_transaction(
            db, lambda s: ledger.apply_delta(user.id, 50, 5, entry(PointHistoryType.PROMOCODE, "7"))
        )

        # Then
        assert snapshot.points == 150
        assert snapshot.xp == 15
        assert snapshot.history_id is not None

        stored = fetch(User, user.id)
        assert stored.points == 150
        assert stored.xp == 15

        rows = history_rows(session_factory, user.id)
        assert len(rows) == 1
        assert rows[0].amount == 50
        assert rows[0].balance_before == 100
        assert rows[0].balance_after == 150
        assert rows[0].type == PointHistoryType.PROMOCODE
        assert rows[0].related_id == "7"

    def test_debit_below_zero_is_rejected_without_changes(self, db, make_user, fetch, session_factory):
        # Given
        user = make_user(points=30)
        ledger = BalanceLedger(db)

        # When / Then
        with pytest.raises(InsufficientBalanceError) as exc_info:
            run_in_transaction(db, lambda s: ledger.apply_delta(user.id, -31, 0, entry()))

        assert exc_info.value.error_code == "INSUFFICIENT_BALANCE"
        assert fetch(User, user.id).points == 30
        assert history_rows(session_factory, user.id) == []

    def test_debit_to_exactly_zero_is_allowed(self, db, make_user):
        user = make_user(points=30)
        ledger = BalanceLedger(db)

        snapshot = run_in_transaction(db, lambda s: ledger.apply_delta(user.id, -30, 0, entry()))

        assert snapshot.points == 0

    def test_negative_xp_delta_is_rejected(self, db, make_user):
        user = make_user(points=10, xp=10)
        ledger = BalanceLedger(db)

        with pytest.raises(ValidationError):
            run_in_transaction(db, lambda s: ledger.apply_delta(user.id, 0, -1, entry()))

    def test_unknown_user(self, db):
        ledger = BalanceLedger(db)

        with pytest.raises(UserNotFoundError):
            run_in_transaction(db, lambda s: ledger.apply_delta(999, 10, 0, entry()))

    def test_pure_xp_delta_leaves_no_history_row(self, db, make_user, session_factory):
        user = make_user(points=5)
        ledger = BalanceLedger(db)

        snapshot = run_in_transaction(db, lambda s: ledger.apply_delta(user.id, 0, 5, entry()))

        assert snapshot.xp == 5
        assert snapshot.history_id is None
        assert history_rows(session_factory, user.id) == []

    def test_multiple_deltas_in_one_transaction_chain_balances(self, db, make_user, session_factory):
        # Given
        user = make_user(points=0)
        ledger = BalanceLedger(db)

        # When: 같은 트랜잭션에서 연속 적용
        def work(session):
            ledger.apply_delta(user.id, 10, 0, entry())
            ledger.apply_delta(user.id, 500, 0, entry(PointHistoryType.RANK_UP))
            return ledger.apply_delta(user.id, -200, 0, entry(PointHistoryType.SHOP_PURCHASE))

        snapshot = run_in_transaction(db, work)

        # Then
        assert snapshot.points == 310
        rows = history_rows(session_factory, user.id)
        assert [(r.balance_before, r.balance_after) for r in rows] == [(0, 10), (10, 510), (510, 310)]

    def test_concurrent_debits_never_overdraw(self, session_factory, make_user, fetch):
        # Given: 100 포인트, 30 포인트씩 8번 동시 차감
        user = make_user(points=100)

        def worker(_):
            session = session_factory()
            try:
                ledger = BalanceLedger(session)
                run_in_transaction(session, lambda s: ledger.apply_delta(user.id, -30, 0, entry()))
                return "ok"
            except InsufficientBalanceError:
                return "insufficient"
            finally:
                session.close()

        # When
        results = run_concurrently(worker, 8)

        # Then: 정확히 3번 성공
        assert results.count("ok") == 3
        assert fetch(User, user.id).points == 10
        assert len(history_rows(session_factory, user.id)) == 3


class TestLedgerReadSide:
    """잔액/원장 조회 및 정합성 검증 테스트"""

    def test_history_is_newest_first_and_paged(self, db, make_user):
        # Given
        user = make_user(points=0)
        ledger = BalanceLedger(db)
        for amount in (10, 20, 30):
            run_in_transaction(db, lambda s, a=amount: ledger.apply_delta(user.id, a, 0, entry()))

        # When
        page = ledger.get_history(user.id, limit=2, offset=0)

        # Then
        assert page.balance == 60
        assert page.total_count == 3
        assert page.has_next is True
        assert [e.amount for e in page.entries] == [30, 20]

        last_page = ledger.get_history(user.id, limit=2, offset=2)
        assert [e.amount for e in last_page.entries] == [10]
        assert last_page.has_next is False

    def test_history_limit_is_capped(self, db, make_user):
        user = make_user(points=0)
        ledger = BalanceLedger(db)
        page = ledger.get_history(user.id, limit=1000)
        assert page.entries == []

    def test_get_balance(self, db, make_user):
        user = make_user(points=42, xp=7)
        balance = BalanceLedger(db).get_balance(user.id)
        assert balance.balance == 42
        assert balance.xp == 7

    def test_get_balance_unknown_user(self, db):
        with pytest.raises(UserNotFoundError):
            BalanceLedger(db).get_balance(12345)

    def test_user_integrity_ok_after_mixed_operations(self, db, make_user):
        user = make_user(points=0)
        ledger = BalanceLedger(db)
        run_in_transaction(db, lambda s: ledger.apply_delta(user.id, 100, 0, entry()))
        run_in_transaction(db, lambda s: ledger.apply_delta(user.id, -40, 0, entry()))

        result = ledger.verify_user_integrity(user.id)

        assert result.status == "OK"
        assert result.calculated_balance == 60
        assert result.recorded_balance == 60
        assert result.entry_count == 2

    def test_user_integrity_detects_tampered_row(self, db, make_user, session_factory):
        # Given: 원장 항목 하나를 직접 변조
        user = make_user(points=0)
        ledger = BalanceLedger(db)
        run_in_transaction(db, lambda s: ledger.apply_delta(user.id, 100, 0, entry()))
        run_in_transaction(db, lambda s: ledger.apply_delta(user.id, 50, 0, entry()))

        with session_factory() as session:
            row = session.query(PointHistory).filter(PointHistory.user_id == user.id).order_by(PointHistory.id).first()
            row.amount = 999
            tampered_id = row.id
            session.commit()

        # When
        with session_factory() as session:
            result = BalanceLedger(session).verify_user_integrity(user.id)

        # Then
        assert result.status == "MISMATCH"
        assert result.entry_id == tampered_id

    def test_user_integrity_detects_balance_drift(self, db, make_user, session_factory):
        user = make_user(points=0)
        ledger = BalanceLedger(db)
        run_in_transaction(db, lambda s: ledger.apply_delta(user.id, 100, 0, entry()))

        with session_factory() as session:
            session.get(User, user.id).points = 150
            session.commit()

        with session_factory() as session:
            result = BalanceLedger(session).verify_user_integrity(user.id)

        assert result.status == "MISMATCH"
        assert result.calculated_balance == 100
        assert result.recorded_balance == 150

    def test_global_integrity(self, db, make_user):
        a = make_user(points=0)
        b = make_user(points=0)
        ledger = BalanceLedger(db)
        run_in_transaction(db, lambda s: ledger.apply_delta(a.id, 70, 0, entry()))
        run_in_transaction(db, lambda s: ledger.apply_delta(b.id, 30, 0, entry()))

        result = ledger.verify_global_integrity()

        assert result.status == "OK"
        assert result.total_points == 100
        assert result.total_amounts == 100
        assert result.entry_count == 2

    def test_admin_adjust_records_admin_entry(self, db, make_user, session_factory):
        user = make_user(points=10)
        ledger = BalanceLedger(db)

        snapshot = ledger.admin_adjust(user.id, -5, "correction", admin_id=99)

        assert snapshot.points == 5
        rows = history_rows(session_factory, user.id)
        assert rows[-1].type == PointHistoryType.ADMIN_ADJUSTMENT
        assert rows[-1].related_id == "99"

    def test_admin_adjust_rejects_zero(self, db, make_user):
        user = make_user(points=10)
        with pytest.raises(ValidationError):
            BalanceLedger(db).admin_adjust(user.id, 0, "noop", admin_id=1)
