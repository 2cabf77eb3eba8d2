import logging
from typing import Optional

from sqlalchemy.orm import Session

from rewardapi.core.exceptions import UserNotFoundError
from rewardapi.models.points import PointHistoryType
from rewardapi.repositories.rank_repository import RankRepository
from rewardapi.repositories.user_repository import UserRepository
from rewardapi.schemas.points import LedgerEntryInput
from rewardapi.schemas.rank import RankChange
from rewardapi.services.ledger_service import BalanceLedger

logger = logging.getLogger(__name__)


class RankResolver:
    """XP 에 따른 랭크 결정 - 승급 보너스는 랭크당 정확히 한 번"""

    def __init__(self, db: Session, ledger: Optional[BalanceLedger] = None):
        self.db = db
        self.ledger = ledger or BalanceLedger(db)
        self.user_repo = UserRepository(db)
        self.rank_repo = RankRepository(db)

    def resolve(self, user_id: int, new_xp: int) -> Optional[RankChange]:
        """호출자 트랜잭션 안에서 랭크 재계산

        저장된 rank_id 는 잠금과 함께 새로 읽은 값으로 비교하므로,
        동시에 같은 랭크로 승급하는 두 트랜잭션 중 하나만 보너스를 지급합니다.
        """
        user = self.user_repo.lock(user_id)
        if user is None:
            raise UserNotFoundError(details={"user_id": user_id})

        rank = self.rank_repo.find_for_xp(new_xp)
        if rank is None or rank.id == user.rank_id:
            return None

        previous_rank_id = user.rank_id
        user.rank_id = rank.id
        self.db.flush()

        points_awarded = 0
        if rank.points_reward > 0:
            self.ledger.apply_delta(
                user_id,
                rank.points_reward,
                0,
                LedgerEntryInput(
                    type=PointHistoryType.RANK_UP,
                    description=f"Rank up bonus: {rank.name}",
                    related_id=str(rank.id),
                ),
            )
            points_awarded = rank.points_reward

        logger.info(
            f"User {user_id} rank changed {previous_rank_id} -> {rank.id} ({rank.name}) at {new_xp} XP"
        )
        return RankChange(
            previous_rank_id=previous_rank_id,
            rank_id=rank.id,
            name=rank.name,
            icon=rank.icon or "",
            xp=new_xp,
            points_awarded=points_awarded,
        )
