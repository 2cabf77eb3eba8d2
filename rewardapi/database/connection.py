from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from rewardapi.config import settings


def _enable_sqlite_immediate_transactions(engine: Engine) -> None:
    """SQLite: 트랜잭션 시작 시점에 쓰기 락을 잡아 read-then-write 경쟁을 직렬화"""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # pysqlite의 암시적 BEGIN을 끄고 아래 begin 이벤트에서 직접 발행
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str, **kwargs) -> Engine:
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": 30},
            **kwargs,
        )
        _enable_sqlite_immediate_transactions(engine)
        return engine

    return create_engine(
        url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,  # 연결 유효성 검사
        pool_recycle=3600,  # 1시간마다 연결 재생성
        echo=settings.DEBUG,  # 디버그 모드에서 SQL 로깅
        **kwargs,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    # expire_on_commit=False: 커밋 후 응답 생성 시 DetachedInstanceError 방지
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        expire_on_commit=False,
    )


engine = build_engine(settings.database_url)
SessionLocal = build_session_factory(engine)
