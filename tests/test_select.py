"""
Test order-statistic selection and weighted quantiles.
"""

import pytest
import numpy as np

from pybacon._core.select import (
    select_k,
    select_subset,
    smallest_excluded,
    weighted_quantile,
    weighted_median,
)


class TestSelectK:
    """Test the k-th smallest element selector."""

    def test_places_order_statistic(self):
        """x[k] is the k-th order statistic, partitioned around it."""
        rng = np.random.default_rng(1)
        for n in (1, 2, 7, 50):
            x0 = rng.standard_normal(n)
            for k in range(n):
                x = x0.copy()
                value = select_k(x, k)
                assert value == np.sort(x0)[k]
                assert x[k] == value
                assert np.all(x[:k] <= value)
                assert np.all(x[k + 1:] >= value)

    def test_is_permutation(self):
        """Selection only reorders the array."""
        x0 = np.array([5.0, 1.0, 4.0, 1.0, 3.0])
        x = x0.copy()
        select_k(x, 2)
        np.testing.assert_array_equal(np.sort(x), np.sort(x0))

    def test_rank_out_of_range(self):
        """k outside [0, n-1] is rejected."""
        with pytest.raises(ValueError):
            select_k(np.arange(3.0), 3)


class TestSelectSubset:
    """Test selection of the m smallest observations."""

    def test_subset_without_ties(self):
        """Without ties, exactly the m smallest are selected."""
        rng = np.random.default_rng(2)
        dist = rng.uniform(size=30)
        order = np.argsort(dist)
        for m in range(1, 31):
            subset = select_subset(dist, m)
            expected = np.zeros(30, dtype=bool)
            expected[order[:m]] = True
            np.testing.assert_array_equal(subset, expected)

    def test_ties_admit_extra(self):
        """Ties at the threshold admit additional elements."""
        dist = np.array([0.5, 0.1, 0.3, 0.3, 0.3, 0.9])
        for m in range(1, 7):
            subset = select_subset(dist, m)
            smallest = np.argsort(dist, kind='stable')[:m]
            assert subset.sum() >= m
            assert np.all(subset[smallest])
        np.testing.assert_array_equal(
            select_subset(dist, 2),
            [False, True, True, True, True, False]
        )

    def test_dist_not_reordered(self):
        """The input array keeps its order; the selection runs on the buffer."""
        dist = np.array([3.0, 2.0, 1.0, 0.0])
        buffer = np.empty(4)
        out = np.empty(4, dtype=bool)
        select_subset(dist, 2, out=out, buffer=buffer)
        np.testing.assert_array_equal(dist, [3.0, 2.0, 1.0, 0.0])
        np.testing.assert_array_equal(out, [False, False, True, True])

    def test_eligible_mask(self):
        """Ineligible observations never enter the subset."""
        dist = np.array([0.0, 1.0, 2.0, np.inf])
        eligible = np.array([True, True, True, False])
        subset = select_subset(dist, 4, eligible=eligible)
        np.testing.assert_array_equal(subset, [True, True, True, False])


class TestSmallestExcluded:
    """Test the forced-admission helper."""

    def test_picks_smallest_outside(self):
        dist = np.array([0.1, 0.2, 0.3, 0.05])
        subset = np.array([True, False, False, True])
        assert smallest_excluded(dist, subset) == 1

    def test_respects_eligible(self):
        dist = np.array([0.1, 0.2, 0.3])
        subset = np.array([True, False, False])
        eligible = np.array([True, False, True])
        assert smallest_excluded(dist, subset, eligible) == 2

    def test_none_left(self):
        subset = np.ones(3, dtype=bool)
        assert smallest_excluded(np.zeros(3), subset) == -1

    def test_nan_is_admitted_last(self):
        dist = np.array([np.nan, 2.0, 0.0])
        subset = np.array([False, False, True])
        assert smallest_excluded(dist, subset) == 1


class TestWeightedQuantile:
    """Test the weighted quantile."""

    def test_unit_weights_median(self):
        """With unit weights, the lower median is returned."""
        x = np.array([3.0, 1.0, 2.0, 5.0, 4.0])
        assert weighted_median(x, np.ones(5)) == 3.0
        assert weighted_median(np.array([1.0, 2.0, 3.0, 4.0]), np.ones(4)) == 2.0

    def test_heavy_weight_dominates(self):
        x = np.array([1.0, 2.0, 3.0, 10.0])
        w = np.array([1.0, 1.0, 1.0, 10.0])
        assert weighted_median(x, w) == 10.0

    def test_matches_cumulative_definition(self):
        """Smallest x_j with cumulative weight >= prob * total."""
        rng = np.random.default_rng(3)
        x = rng.standard_normal(101)
        w = rng.uniform(0.1, 3.0, 101)
        order = np.argsort(x)
        cum = np.cumsum(w[order])
        for prob in (0.0, 0.1, 0.25, 0.5, 0.9, 1.0):
            idx = np.searchsorted(cum, prob * w.sum() * (1 - 1e-15))
            assert weighted_quantile(x, w, prob) == x[order][idx]

    def test_zero_weights_ignored(self):
        x = np.array([100.0, 1.0, 2.0, 3.0])
        w = np.array([0.0, 1.0, 1.0, 1.0])
        assert weighted_median(x, w) == 2.0

    def test_invalid_input(self):
        with pytest.raises(ValueError):
            weighted_quantile(np.ones(3), np.zeros(3), 0.5)
        with pytest.raises(ValueError):
            weighted_quantile(np.ones(3), np.ones(3), 1.5)
