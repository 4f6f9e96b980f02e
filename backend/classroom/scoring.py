"""
Decay scoring for a picked student's answer.

The live score is a pure function of how long the student has been answering:
flat during a short grace period, then falling linearly to zero at three
minutes. A correct answer earns the live score plus a 10% bonus, an incorrect
one earns nothing.
"""
from __future__ import annotations
import math

MAX_SCORE = 1000
GRACE_PERIOD_MS = 3_000
DECAY_END_MS = 180_000
CORRECT_BONUS_RATE = 0.10

# How long the result stays on screen before the picker is free again
CORRECT_DISPLAY_SECONDS = 2.0
INCORRECT_DISPLAY_SECONDS = 1.5


def live_score(elapsed_ms: float) -> int:
	if elapsed_ms <= GRACE_PERIOD_MS:
		return MAX_SCORE
	if elapsed_ms >= DECAY_END_MS:
		return 0
	fraction_lost = (elapsed_ms - GRACE_PERIOD_MS) / (DECAY_END_MS - GRACE_PERIOD_MS)
	return max(0, math.floor(MAX_SCORE * (1 - fraction_lost)))


def correct_bonus(score: int) -> int:
	return math.floor(score * CORRECT_BONUS_RATE)


def award(is_correct: bool, score: int) -> int:
	if not is_correct:
		return 0
	return score + correct_bonus(score)


def display_seconds(is_correct: bool) -> float:
	return CORRECT_DISPLAY_SECONDS if is_correct else INCORRECT_DISPLAY_SECONDS
