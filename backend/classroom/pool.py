from __future__ import annotations
import random
from typing import Callable, List, Optional, Sequence


# Flagged students get this many extra pool entries on top of their own
SPECIAL_NEEDS_EXTRA_ENTRIES = 3


def pool_weight(is_special_needs: bool) -> int:
	return 1 + SPECIAL_NEEDS_EXTRA_ENTRIES * int(bool(is_special_needs))


def shuffle_in_place(items: List[str], rng: Optional[random.Random] = None) -> List[str]:
	"""Fisher-Yates: walk backwards, swapping each slot with a uniform pick from [0, i]."""
	rng = rng or random.Random()
	for i in range(len(items) - 1, 0, -1):
		j = rng.randint(0, i)
		items[i], items[j] = items[j], items[i]
	return items


def build_pool(
	roster: Sequence[str],
	is_special_needs: Callable[[str], bool],
	rng: Optional[random.Random] = None,
) -> List[str]:
	"""Return a freshly shuffled pool of names, flagged students repeated 4 times.

	An empty roster yields an empty pool; callers decide how to report that.
	"""
	pool: List[str] = []
	for name in roster:
		pool.extend([name] * pool_weight(is_special_needs(name)))
	return shuffle_in_place(pool, rng)
