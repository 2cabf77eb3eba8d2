import os

# 앱 모듈 import 시 생성되는 기본 엔진이 PostgreSQL 에 연결하지 않도록
os.environ.setdefault("DATABASE_URL", "sqlite://")

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable, List

import pytest

from rewardapi.config import EconomySettings
from rewardapi.database.connection import build_engine, build_session_factory
from rewardapi.database.schema import create_all
from rewardapi.models.user import User


@pytest.fixture
def engine(tmp_path):
    """파일 기반 SQLite - 스레드 간 동시성 테스트를 위해 메모리 DB 대신 사용"""
    engine = build_engine(f"sqlite:///{tmp_path / 'rewards.db'}")
    create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def economy():
    return EconomySettings()


@pytest.fixture
def fixed_now():
    # 2024-03-15 12:00 Istanbul (UTC+3)
    return datetime(2024, 3, 15, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def seed(session_factory):
    """모델 인스턴스를 별도 세션으로 커밋하고 그대로 반환"""

    def _seed(*instances):
        with session_factory() as session:
            session.add_all(instances)
            session.commit()
        return instances[0] if len(instances) == 1 else instances

    return _seed


@pytest.fixture
def make_user(seed):
    def _make_user(**overrides) -> User:
        values = {
            "site_username": "tester",
            "points": 0,
            "xp": 0,
            "daily_spins_left": 3,
            "weekly_wheel_streak": 0,
        }
        values.update(overrides)
        return seed(User(**values))

    return _make_user


@pytest.fixture
def fetch(session_factory):
    """새 세션으로 커밋된 행을 다시 읽음"""

    def _fetch(model, id):
        with session_factory() as session:
            return session.get(model, id)

    return _fetch


def run_concurrently(worker: Callable[[int], object], count: int) -> List[object]:
    """worker(i) 를 count 개 스레드에서 동시에 실행하고 결과 목록을 반환"""
    with ThreadPoolExecutor(max_workers=count) as pool:
        return list(pool.map(worker, range(count)))


@pytest.fixture
def current_user():
    """라우터 테스트에서 인증된 사용자 ID (테스트 안에서 변경 가능)"""
    return {"user_id": None, "admin_id": 1}


@pytest.fixture
def app(session_factory, current_user):
    from unittest.mock import AsyncMock, MagicMock

    from dependency_injector import providers

    from rewardapi.core.security import require_admin, verify_internal_token, verify_token
    from rewardapi.database.session import get_db
    from rewardapi.main import create_app
    from rewardapi.services.cooldown_gate import InMemoryAttemptThrottle, InMemoryCooldownGate

    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[verify_token] = lambda: current_user["user_id"]
    app.dependency_overrides[require_admin] = lambda: current_user["admin_id"]
    app.dependency_overrides[verify_internal_token] = lambda: None

    dispatcher = MagicMock()
    dispatcher.dispatch = AsyncMock(return_value=0)
    services = app.container.services
    services.event_dispatcher.override(providers.Object(dispatcher))
    services.cooldown_gate.override(providers.Object(InMemoryCooldownGate()))
    services.attempt_throttle.override(providers.Object(InMemoryAttemptThrottle()))
    app.state.dispatcher = dispatcher

    yield app

    services.event_dispatcher.reset_override()
    services.cooldown_gate.reset_override()
    services.attempt_throttle.reset_override()
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    with TestClient(app) as client:
        yield client
