import math
from collections import Counter
import random

import pytest

from rewardapi.utils.weighted_random import EmptyChoiceError, select_weighted


def fixed(value):
    return lambda a, b: value


class TestSelectWeighted:
    """가중치 선택 테스트"""

    def test_walk_returns_first_item_where_remainder_crosses_zero(self):
        # Given: 가중치 [10, 5, 1, 0.3, 0.2, 0.1], 합계 16.6
        items = [("a", 10), ("b", 5), ("c", 1), ("d", 0.3), ("e", 0.2), ("f", 0.1)]

        # When / Then: r=7 → 7-10 <= 0 → 첫 항목
        assert select_weighted(items, fixed(7)) == "a"
        # r=12 → 12-10=2, 2-5 <= 0 → 두번째 항목
        assert select_weighted(items, fixed(12)) == "b"
        # r=15.5 → 15.5-10-5=0.5, 0.5-1 <= 0 → 세번째 항목
        assert select_weighted(items, fixed(15.5)) == "c"

    def test_boundary_value_belongs_to_earlier_item(self):
        items = [("a", 10), ("b", 5)]
        assert select_weighted(items, fixed(10)) == "a"

    def test_empty_list_raises(self):
        with pytest.raises(EmptyChoiceError):
            select_weighted([])

    def test_empty_choice_error_is_value_error(self):
        assert issubclass(EmptyChoiceError, ValueError)

    @pytest.mark.parametrize("weight", [-1, math.inf, math.nan])
    def test_invalid_weights_raise(self, weight):
        with pytest.raises(ValueError):
            select_weighted([("a", 1), ("b", weight)], fixed(0.5))

    def test_zero_weight_never_selected_when_positive_exists(self):
        items = [("zero", 0), ("one", 1), ("zero2", 0)]
        for r in (0.0, 0.3, 0.999, 1.0):
            assert select_weighted(items, fixed(r)) == "one"

    def test_all_zero_weights_choose_uniformly(self):
        items = [("a", 0), ("b", 0), ("c", 0)]
        assert select_weighted(items, fixed(0.2)) == "a"
        assert select_weighted(items, fixed(1.5)) == "b"
        assert select_weighted(items, fixed(2.9)) == "c"
        # uniform(0, n) 가 n 을 반환하는 경우도 범위 안
        assert select_weighted(items, fixed(3.0)) == "c"

    def test_float_exhaustion_returns_last_positive_item(self):
        # rng 가 합계보다 약간 큰 값을 반환해도 마지막 양수 가중치 항목
        items = [("a", 0.1), ("b", 0.2), ("c", 0)]
        assert select_weighted(items, fixed(0.30000001)) == "b"

    def test_distribution_follows_weights(self):
        # Given
        rng = random.Random(42)
        items = [("a", 10), ("b", 5), ("c", 1)]

        # When
        counts = Counter(select_weighted(items, rng.uniform) for _ in range(16000))

        # Then: 기대값 10000 / 5000 / 1000
        assert 9500 < counts["a"] < 10500
        assert 4600 < counts["b"] < 5400
        assert 850 < counts["c"] < 1150

    def test_default_rng_is_used_when_none_given(self):
        assert select_weighted([("only", 3)]) == "only"
