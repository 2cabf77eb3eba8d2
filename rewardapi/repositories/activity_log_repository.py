"""
ActivityLog Repository

사용자 활동 감사 로그 - 추가/조회만 제공
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from rewardapi.models.activity_log import UserActivityLog
from rewardapi.repositories.base import BaseRepository
from rewardapi.schemas.activity_log import ActivityLogEntry


class ActivityLogRepository(BaseRepository[UserActivityLog]):
    def __init__(self, db: Session):
        super().__init__(UserActivityLog, db)

    def create_log(
        self,
        user_id: int,
        action_type: str,
        action_title: str,
        action_description: Optional[str] = None,
        related_id: Optional[str] = None,
        related_type: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> ActivityLogEntry:
        log = self.add(
            UserActivityLog(
                user_id=user_id,
                action_type=action_type,
                action_title=action_title,
                action_description=action_description,
                related_id=related_id,
                related_type=related_type,
                extra=extra,
            )
        )
        return ActivityLogEntry.model_validate(log, from_attributes=True)

    def get_user_logs(self, user_id: int, limit: int = 50) -> List[ActivityLogEntry]:
        rows = (
            self.db.query(UserActivityLog)
            .filter(UserActivityLog.user_id == user_id)
            .order_by(desc(UserActivityLog.id))
            .limit(limit)
            .all()
        )
        return [ActivityLogEntry.model_validate(row, from_attributes=True) for row in rows]
