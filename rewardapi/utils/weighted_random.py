"""
가중치 기반 랜덤 선택

휠 상품 추첨에 사용됩니다. 가중치는 합이 1 일 필요가 없습니다.
"""

import math
import random
from typing import Callable, Hashable, Optional, Sequence, Tuple, TypeVar

K = TypeVar("K", bound=Hashable)

_system_random = random.SystemRandom()


class EmptyChoiceError(ValueError):
    """선택할 항목이 없음"""


def select_weighted(
    items: Sequence[Tuple[K, float]],
    rng: Optional[Callable[[float, float], float]] = None,
) -> K:
    """(id, weight) 목록에서 가중치 비율로 하나를 선택합니다.

    r = rng(0, total) 을 뽑은 뒤 목록 순서대로 가중치를 빼 나가며
    r <= 0 이 되는 첫 항목을 반환합니다.

    - 빈 목록: EmptyChoiceError
    - 음수/비유한 가중치: ValueError
    - 모든 가중치가 0: 균등 선택
    - 부동소수 오차로 끝까지 0 이하가 되지 않으면 마지막 양수 가중치 항목
    - 가중치 0 항목은 양수 가중치 항목이 있는 한 선택되지 않음

    Args:
        items: (식별자, 가중치) 순서 있는 목록
        rng: uniform(a, b) 형태의 난수 함수 (테스트 주입용)
    """
    if not items:
        raise EmptyChoiceError("Cannot select from an empty list")

    uniform = rng or _system_random.uniform

    total = 0.0
    for key, weight in items:
        if not math.isfinite(weight) or weight < 0:
            raise ValueError(f"Invalid weight {weight!r} for item {key!r}")
        total += weight

    if total == 0:
        index = min(int(uniform(0, len(items))), len(items) - 1)
        return items[index][0]

    r = uniform(0, total)
    last_positive = None
    for key, weight in items:
        if weight <= 0:
            continue
        last_positive = key
        r -= weight
        if r <= 0:
            return key

    return last_positive
