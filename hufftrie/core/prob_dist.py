"""probability distributions over symbols

Used to generate random test data, and to compare the huffman code lengths against the entropy.
"""

import unittest
import numpy as np


class ProbabilityDist:
    """
    Wrapper around a {symbol: probability} dict, the probabilities need to be positive and sum to 1
    """

    def __init__(self, prob_dict: dict):
        self._validate_prob_dist(prob_dict)
        # dicts keep the insertion order, so the alphabet order is that of prob_dict
        self.prob_dict = prob_dict

    def __repr__(self):
        return f"ProbabilityDist({self.prob_dict!r})"

    @classmethod
    def from_counts(cls, count_dict: dict) -> "ProbabilityDist":
        """{A: 3, B: 1} -> {A: 0.75, B: 0.25}, symbols with a 0 count are dropped"""
        total = sum(count_dict.values())
        return cls({s: c / total for s, c in count_dict.items() if c > 0})

    @property
    def size(self):
        return len(self.prob_dict)

    @property
    def alphabet(self):
        return list(self.prob_dict)

    @property
    def prob_list(self):
        return list(self.prob_dict.values())

    @property
    def entropy(self) -> float:
        """https://en.wikipedia.org/wiki/Entropy_(information_theory)"""
        probs = np.array(self.prob_list)
        return float(-np.sum(probs * np.log2(probs)))

    def probability(self, symbol):
        return self.prob_dict[symbol]

    @staticmethod
    def _validate_prob_dist(prob_dict):
        for _, prob in prob_dict.items():
            assert prob > 0, "probabilities need to be positive"

        if abs(sum(prob_dict.values()) - 1.0) > 1e-8:
            raise ValueError("probabilities do not sum to 1")


class ProbabilityDistTest(unittest.TestCase):
    def test_entropy(self):
        assert ProbabilityDist({"H": 0.5, "T": 0.5}).entropy == 1.0
        assert ProbabilityDist({"A": 0.5, "B": 0.25, "C": 0.25}).entropy == 1.5
        assert ProbabilityDist({"A": 1.0}).entropy == 0.0

    def test_validation_failure(self):
        with self.assertRaises(ValueError):
            ProbabilityDist({"H": 0.5, "T": 0.4})

    def test_from_counts(self):
        dist = ProbabilityDist.from_counts({"a": 5, "b": 2, "r": 2, "c": 1, "z": 0})
        np.testing.assert_almost_equal(dist.probability("a"), 0.5)
        assert dist.alphabet == ["a", "b", "r", "c"]

