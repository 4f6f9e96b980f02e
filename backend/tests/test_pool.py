"""
Tests for the weighted name pool
"""
import random
from collections import Counter

from classroom.pool import build_pool, pool_weight, shuffle_in_place


def test_pool_weighting_counts():
    """N students with K flagged give N + 3K entries"""
    roster = ["Amy", "Bo", "Cy", "Di", "Ed"]
    flagged = {"Bo", "Ed"}

    pool = build_pool(roster, lambda name: name in flagged, random.Random(1))

    assert len(pool) == len(roster) + 3 * len(flagged)
    counts = Counter(pool)
    for name in roster:
        assert counts[name] == (4 if name in flagged else 1)


def test_pool_weight():
    assert pool_weight(False) == 1
    assert pool_weight(True) == 4


def test_empty_roster_gives_empty_pool():
    assert build_pool([], lambda name: True) == []


def test_pool_is_shuffled_copy_of_multiset():
    roster = ["Amy", "Bo", "Cy"]
    pool = build_pool(roster, lambda name: name == "Cy", random.Random(3))
    assert sorted(pool) == sorted(["Amy", "Bo", "Cy", "Cy", "Cy", "Cy"])


def test_shuffle_swaps_with_index_in_range():
    """Each step must draw j from [0, i] inclusive"""

    class RecordingRandom(random.Random):
        def __init__(self):
            super().__init__(0)
            self.calls = []

        def randint(self, a, b):
            self.calls.append((a, b))
            return super().randint(a, b)

    rng = RecordingRandom()
    shuffle_in_place(list("abcde"), rng)
    assert rng.calls == [(0, 4), (0, 3), (0, 2), (0, 1)]


def test_shuffle_position_uniformity():
    """Chi-square on where one unflagged student lands across many pools"""
    roster = ["Amy", "Bo", "Cy", "Di"]
    rng = random.Random(20240101)
    trials = 7000
    pool_size = 7  # Amy, Bo, Cy + Di x4
    positions = Counter()
    for _ in range(trials):
        pool = build_pool(roster, lambda name: name == "Di", rng)
        positions[pool.index("Amy")] += 1

    expected = trials / pool_size
    chi_square = sum((positions[i] - expected) ** 2 / expected for i in range(pool_size))
    # 6 degrees of freedom, p = 0.001
    assert chi_square < 22.46
