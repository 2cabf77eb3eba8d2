"""
ActivityLog Service

경제 트랜잭션과 분리된 자체 세션으로 활동 로그를 남깁니다.
로그 기록 실패는 보상 결과에 영향을 주지 않습니다.
"""

import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from rewardapi.database.transaction import run_in_transaction
from rewardapi.repositories.activity_log_repository import ActivityLogRepository
from rewardapi.schemas.activity_log import ActivityLogEntry
from rewardapi.schemas.events import ActivityLogged

logger = logging.getLogger(__name__)


class ActivityLogService:
    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def log_activity(self, event: ActivityLogged) -> Optional[ActivityLogEntry]:
        """활동 로그 1건 기록 (베스트 에포트)"""
        extra = dict(event.metadata)
        if event.amounts:
            extra["amounts"] = event.amounts

        db = self.session_factory()
        try:
            return run_in_transaction(
                db,
                lambda session: ActivityLogRepository(session).create_log(
                    user_id=event.user_id,
                    action_type=event.action_type,
                    action_title=event.action_title,
                    action_description=event.action_description,
                    related_id=event.related_id,
                    related_type=event.related_type,
                    extra=extra or None,
                ),
            )
        except Exception as e:
            logger.warning(
                f"Failed to write activity log {event.action_type} for user {event.user_id}: {e}"
            )
            return None
        finally:
            db.close()
