from .points import BalanceSnapshot, LedgerEntryInput, PointHistoryEntry
from .rank import RankChange, RankInfo
from .events import PolicyOutcome
