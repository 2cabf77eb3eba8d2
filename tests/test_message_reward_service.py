import asyncio

import pytest

from rewardapi.config import EconomySettings
from rewardapi.core.exceptions import (
    CooldownActiveError,
    MessageTooShortError,
    UserNotLinkedError,
)
from rewardapi.models.points import PointHistory, PointHistoryType
from rewardapi.models.rank import Rank
from rewardapi.models.telegram import TelegramGroupUser
from rewardapi.models.user import User
from rewardapi.schemas.events import ActivityLogged, LevelUp
from rewardapi.schemas.telegram import TelegramMessageRequest
from rewardapi.services.cooldown_gate import InMemoryCooldownGate, message_cooldown_key
from rewardapi.services.ledger_service import BalanceLedger
from rewardapi.services.message_reward_service import MessageRewardService

from conftest import run_concurrently


def message(text="hello there", telegram_id="tg-100"):
    return TelegramMessageRequest(telegram_id=telegram_id, text=text, username="tester")


def process(svc, msg):
    return asyncio.run(svc.process_message(msg))


@pytest.fixture
def linked_user(seed, make_user):
    user = make_user(telegram_id="tg-100", first_name="Ayse")
    seed(TelegramGroupUser(telegram_id="tg-100", linked_user_id=user.id))
    return user


def group_user(session_factory, telegram_id="tg-100"):
    with session_factory() as session:
        return session.query(TelegramGroupUser).filter(TelegramGroupUser.telegram_id == telegram_id).one()


class TestMessageReward:
    """그룹 메시지 보상 테스트"""

    def test_rewards_linked_user(self, db, economy, fixed_now, linked_user, fetch, session_factory):
        svc = MessageRewardService(db, economy, InMemoryCooldownGate(), clock=lambda: fixed_now)

        outcome = process(svc, message())

        result = outcome.result
        assert result.points_added == economy.points_per_message
        assert result.xp_added == economy.xp_per_message
        assert result.new_balance == economy.points_per_message
        assert result.message_count == 1
        assert result.rank_change is None

        stored = fetch(User, linked_user.id)
        assert stored.points == economy.points_per_message
        assert stored.xp == economy.xp_per_message
        with session_factory() as session:
            history = session.query(PointHistory).filter(PointHistory.user_id == linked_user.id).one()
        assert history.type == PointHistoryType.MESSAGE_REWARD
        assert history.related_id == "tg-100"

        assert len(outcome.events) == 1
        assert outcome.events[0].kind == "leaderboard_invalidated"
        assert outcome.events[0].throttled is True

    def test_xp_cadence(self, db, fixed_now, linked_user, fetch):
        # Given: 5번째 메시지마다 XP, 쿨다운 없음
        economy = EconomySettings(messages_for_xp=5, message_cooldown_seconds=0)
        svc = MessageRewardService(db, economy, InMemoryCooldownGate(), clock=lambda: fixed_now)

        # When
        xp_added = [process(svc, message()).result.xp_added for _ in range(10)]

        # Then
        assert xp_added == [0, 0, 0, 0, 5, 0, 0, 0, 0, 5]
        stored = fetch(User, linked_user.id)
        assert stored.points == 10 * economy.points_per_message
        assert stored.xp == 10

    def test_short_message_still_counted(self, db, economy, fixed_now, linked_user, fetch, session_factory):
        svc = MessageRewardService(db, economy, InMemoryCooldownGate(), clock=lambda: fixed_now)

        with pytest.raises(MessageTooShortError):
            process(svc, message(text="ok"))

        assert group_user(session_factory).message_count == 1
        assert fetch(User, linked_user.id).points == 0

    def test_length_counts_whitespace(self, db, economy, fixed_now, linked_user, fetch):
        # 공백도 길이에 포함 (trim 하지 않음)
        svc = MessageRewardService(db, economy, InMemoryCooldownGate(), clock=lambda: fixed_now)

        outcome = process(svc, message(text=" ok "))

        assert outcome.result.points_added == economy.points_per_message
        assert fetch(User, linked_user.id).points == economy.points_per_message

    def test_cooldown_blocks_second_message(self, db, economy, fixed_now, linked_user, fetch, session_factory):
        gate = InMemoryCooldownGate(clock=lambda: 500.0)
        svc = MessageRewardService(db, economy, gate, clock=lambda: fixed_now)
        process(svc, message())

        with pytest.raises(CooldownActiveError) as exc_info:
            process(svc, message())

        assert exc_info.value.remaining_seconds == economy.message_cooldown_seconds
        assert group_user(session_factory).message_count == 2
        assert fetch(User, linked_user.id).points == economy.points_per_message

    def test_cooldown_expires(self, db, economy, fixed_now, linked_user, fetch):
        now = [500.0]
        svc = MessageRewardService(db, economy, InMemoryCooldownGate(clock=lambda: now[0]), clock=lambda: fixed_now)
        process(svc, message())

        now[0] += economy.message_cooldown_seconds
        process(svc, message())

        assert fetch(User, linked_user.id).points == 2 * economy.points_per_message

    def test_unlinked_user_counted_not_rewarded(self, db, economy, fixed_now, session_factory):
        gate = InMemoryCooldownGate()
        svc = MessageRewardService(db, economy, gate, clock=lambda: fixed_now)

        with pytest.raises(UserNotLinkedError):
            process(svc, message(telegram_id="tg-stranger"))

        stored = group_user(session_factory, "tg-stranger")
        assert stored.message_count == 1
        assert stored.username == "tester"
        # 보상이 없었으므로 쿨다운도 시작되지 않음
        assert asyncio.run(gate.check_remaining(message_cooldown_key("tg-stranger"))) == 0

    def test_level_up_events(self, db, fixed_now, seed, linked_user, fetch):
        # Given
        rank = seed(Rank(name="Rookie", icon="⚡", min_xp=5, points_reward=100))
        economy = EconomySettings(message_cooldown_seconds=0)
        svc = MessageRewardService(db, economy, InMemoryCooldownGate(), clock=lambda: fixed_now)

        # When
        outcome = process(svc, message())

        # Then
        change = outcome.result.rank_change
        assert change.rank_id == rank.id
        assert change.points_awarded == 100
        assert outcome.result.new_balance == economy.points_per_message + 100
        assert fetch(User, linked_user.id).rank_id == rank.id

        level_ups = [e for e in outcome.events if isinstance(e, LevelUp)]
        assert len(level_ups) == 1
        assert level_ups[0].telegram_id == "tg-100"
        assert level_ups[0].display_name == "Ayse"
        assert level_ups[0].rank.name == "Rookie"
        assert any(isinstance(e, ActivityLogged) and e.action_type == "rank_up" for e in outcome.events)

    def test_level_up_notification_disabled(self, db, fixed_now, seed, linked_user):
        seed(Rank(name="Rookie", min_xp=5, points_reward=0))
        economy = EconomySettings(message_cooldown_seconds=0, notify_level_up=False)
        svc = MessageRewardService(db, economy, InMemoryCooldownGate(), clock=lambda: fixed_now)

        outcome = process(svc, message())

        assert outcome.result.rank_change is not None
        assert not any(isinstance(e, LevelUp) for e in outcome.events)

    def test_concurrent_messages_award_rank_bonus_once(self, fixed_now, seed, linked_user, session_factory, fetch):
        # Given: 메시지마다 XP 5, 10 XP 에서 승급
        rank = seed(Rank(name="Rookie", min_xp=10, points_reward=500))
        economy = EconomySettings(message_cooldown_seconds=0, xp_per_message=5, messages_for_xp=1)
        gate = InMemoryCooldownGate()

        def worker(_):
            session = session_factory()
            try:
                svc = MessageRewardService(session, economy, gate, clock=lambda: fixed_now)
                return process(svc, message()).result.rank_change
            finally:
                session.close()

        # When: 8개 메시지가 동시에 임계값을 넘김
        results = run_concurrently(worker, 8)

        # Then: 승급 보너스는 한 번만
        assert sum(1 for change in results if change is not None) == 1
        with session_factory() as session:
            rank_ups = session.query(PointHistory).filter(
                PointHistory.user_id == linked_user.id, PointHistory.type == PointHistoryType.RANK_UP
            ).count()
            integrity = BalanceLedger(session).verify_user_integrity(linked_user.id)
        assert rank_ups == 1
        assert integrity.status == "OK"
        stored = fetch(User, linked_user.id)
        assert stored.xp == 8 * economy.xp_per_message
        assert stored.points == 8 * economy.points_per_message + 500
        assert stored.rank_id == rank.id
