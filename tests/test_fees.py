from decimal import Decimal

import pytest

from catering.services.fees import FeePolicy, fee, split_amount, uses_flat_fee


class TestFee:
    @pytest.mark.parametrize(
        "subtotal, expected",
        [
            (0, 0),
            (50, 0),
            (500, 4),  # 3.5 -> half up
            (30000, 210),
            (100000, 700),
            (627999, 4396),
            (628000, 4400),
            (5000000, 4400),
        ],
    )
    def test_default_policy(self, subtotal, expected):
        assert fee(subtotal) == expected

    def test_threshold_boundary_switches_to_flat(self):
        assert not uses_flat_fee(627999)
        assert uses_flat_fee(628000)

    def test_negative_subtotal_rejected(self):
        with pytest.raises(ValueError):
            fee(-1)

    def test_custom_policy(self):
        policy = FeePolicy(threshold=1000, rate=Decimal("0.1"), flat=50)
        assert fee(999, policy) == 100
        assert fee(1000, policy) == 50


class TestSplitAmount:
    def test_proportional_sums_exactly(self):
        shares = split_amount(4400, [300000, 300000, 28000], "proportional")
        assert shares == [2102, 2102, 196]
        assert sum(shares) == 4400

    def test_proportional_ties_go_to_lower_index(self):
        assert split_amount(10, [1, 1, 1], "proportional") == [4, 3, 3]

    def test_even_split_remainder_to_first(self):
        assert split_amount(10, [5, 1, 1], "even") == [4, 3, 3]

    def test_zero_weights_fall_back_to_even(self):
        assert split_amount(5, [0, 0], "proportional") == [3, 2]

    def test_single_order_gets_everything(self):
        assert split_amount(4396, [627999]) == [4396]

    def test_empty(self):
        assert split_amount(100, []) == []

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            split_amount(10, [1, 2], "random")
