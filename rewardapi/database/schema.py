from sqlalchemy.engine import Engine

from rewardapi.models.base import Base

# 메타데이터 등록을 위해 모든 모델 모듈 import
from rewardapi.models import (  # noqa: F401
    activity_log,
    points,
    promocode,
    rank,
    shop,
    telegram,
    user,
    wheel,
)


def create_all(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)


def drop_all(engine: Engine) -> None:
    Base.metadata.drop_all(bind=engine)
