from sqlalchemy import Column, DateTime, MetaData, func
from sqlalchemy.orm import declarative_base, declared_attr

# 제약 조건 이름을 고정해 두면 마이그레이션에서 CHECK/UNIQUE 를 이름으로 다룰 수 있음
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

Base = declarative_base(metadata=MetaData(naming_convention=NAMING_CONVENTION))


class TimestampMixin:
    """생성 시각 (DB 서버 시간)"""

    @declared_attr
    def created_at(cls):
        return Column(DateTime(timezone=True), server_default=func.now())


class BaseModel(Base, TimestampMixin):
    """변경 가능한 행 - 생성/수정 시각을 모두 가짐

    원장(PointHistory)과 활동 로그처럼 추가만 하는 테이블은
    Base + TimestampMixin 을 직접 사용합니다.
    """

    __abstract__ = True

    @declared_attr
    def updated_at(cls):
        return Column(
            DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
        )
