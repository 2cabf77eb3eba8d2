from rewardapi.database.transaction import run_in_transaction
from rewardapi.models.points import PointHistory, PointHistoryType
from rewardapi.models.rank import Rank
from rewardapi.models.user import User
from rewardapi.services.rank_service import RankResolver

from conftest import run_concurrently


def rank_up_rows(session_factory, user_id):
    with session_factory() as session:
        return (
            session.query(PointHistory)
            .filter(
                PointHistory.user_id == user_id,
                PointHistory.type == PointHistoryType.RANK_UP,
            )
            .all()
        )


class TestRankResolver:
    """랭크 승급 테스트"""

    def test_promotes_and_awards_bonus_once(self, db, seed, make_user, fetch, session_factory):
        # Given
        rookie, veteran = seed(
            Rank(name="Rookie", icon="⚡", min_xp=10, points_reward=100),
            Rank(name="Veteran", icon="🔥", min_xp=50, points_reward=300),
        )
        user = make_user(points=5, xp=12)
        resolver = RankResolver(db)

        # When
        change = run_in_transaction(db, lambda s: resolver.resolve(user.id, 12))

        # Then
        assert change.rank_id == rookie.id
        assert change.previous_rank_id is None
        assert change.points_awarded == 100
        assert change.name == "Rookie"

        stored = fetch(User, user.id)
        assert stored.rank_id == rookie.id
        assert stored.points == 105

        rows = rank_up_rows(session_factory, user.id)
        assert len(rows) == 1
        assert rows[0].related_id == str(rookie.id)

        # 같은 XP 로 다시 계산해도 변화 없음
        again = run_in_transaction(db, lambda s: resolver.resolve(user.id, 12))
        assert again is None
        assert len(rank_up_rows(session_factory, user.id)) == 1

    def test_no_qualifying_rank(self, db, seed, make_user):
        seed(Rank(name="Rookie", min_xp=100, points_reward=10))
        user = make_user(xp=5)

        change = run_in_transaction(db, lambda s: RankResolver(db).resolve(user.id, 5))

        assert change is None

    def test_skipping_ranks_selects_highest_qualifying(self, db, seed, make_user, fetch):
        rookie, veteran = seed(
            Rank(name="Rookie", min_xp=10, points_reward=100),
            Rank(name="Veteran", min_xp=50, points_reward=300),
        )
        user = make_user(points=0, xp=60, rank_id=None)

        change = run_in_transaction(db, lambda s: RankResolver(db).resolve(user.id, 60))

        assert change.rank_id == veteran.id
        assert change.points_awarded == 300
        assert fetch(User, user.id).points == 300

    def test_zero_reward_rank_changes_without_history(self, db, seed, make_user, session_factory):
        rank = seed(Rank(name="Free", min_xp=0, points_reward=0))
        user = make_user(points=0)

        change = run_in_transaction(db, lambda s: RankResolver(db).resolve(user.id, 0))

        assert change.rank_id == rank.id
        assert change.points_awarded == 0
        assert rank_up_rows(session_factory, user.id) == []

    def test_concurrent_promotions_award_exactly_once(self, seed, make_user, session_factory, fetch):
        # Given: 이미 임계값을 넘긴 사용자에 대해 여러 트랜잭션이 동시에 재계산
        rank = seed(Rank(name="Rookie", min_xp=10, points_reward=500))
        user = make_user(points=0, xp=10)

        def worker(_):
            session = session_factory()
            try:
                resolver = RankResolver(session)
                return run_in_transaction(session, lambda s: resolver.resolve(user.id, 10))
            finally:
                session.close()

        # When
        results = run_concurrently(worker, 6)

        # Then
        assert sum(1 for r in results if r is not None) == 1
        assert len(rank_up_rows(session_factory, user.id)) == 1
        assert fetch(User, user.id).points == 500
        assert fetch(User, user.id).rank_id == rank.id
