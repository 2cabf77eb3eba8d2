from abc import ABC
from typing import TypeVar, Generic, Optional, Dict, Any, Type
from sqlalchemy import select
from sqlalchemy.orm import Session

T = TypeVar("T")


class BaseRepository(Generic[T], ABC):
    """모든 리포지토리의 베이스 클래스

    리포지토리는 트랜잭션을 직접 커밋하지 않습니다. 커밋/롤백은
    rewardapi.database.transaction 의 트랜잭션 경계가 담당합니다.
    """

    def __init__(self, model_class: Type[T], db: Session):
        self.model_class = model_class
        self.db = db

    def get(self, id: Any) -> Optional[T]:
        """ID로 모델 조회 (잠금 없음)"""
        return self.db.get(self.model_class, id)

    def lock(self, id: Any) -> Optional[T]:
        """트랜잭션 안에서 최신 행을 잠금과 함께 다시 읽음

        보류 중인 변경을 먼저 flush 한 뒤 SELECT ... FOR UPDATE 로 조회하고,
        identity map 에 남아있는 이전 값을 DB 값으로 덮어씁니다.
        """
        self.db.flush()
        stmt = (
            select(self.model_class)
            .where(getattr(self.model_class, "id") == id)
            .with_for_update(of=self.model_class)
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def add(self, instance: T) -> T:
        """새 레코드 추가 후 flush (PK 할당)"""
        self.db.add(instance)
        self.db.flush()
        return instance

    def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        """레코드 수 조회"""
        query = self.db.query(self.model_class)

        if filters:
            for key, value in filters.items():
                if hasattr(self.model_class, key):
                    query = query.filter(getattr(self.model_class, key) == value)

        return query.count()
