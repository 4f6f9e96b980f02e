from __future__ import annotations
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field


class ScrambleState(BaseModel):
	"""Tiles for a word/sentence scramble. Every move returns a new state."""

	model_config = ConfigDict(frozen=True, populate_by_name=True)

	target: str
	remaining: Tuple[str, ...]
	chosen: Tuple[str, ...] = ()
	# Sentence scrambles join tiles with spaces, spelling scrambles join letters directly
	separator: str = Field(default=" ")

	def choose(self, index: int) -> "ScrambleState":
		if not 0 <= index < len(self.remaining):
			raise IndexError(f"No remaining tile at position {index}")
		tile = self.remaining[index]
		return self.model_copy(update={
			"remaining": self.remaining[:index] + self.remaining[index + 1 :],
			"chosen": self.chosen + (tile,),
		})

	def unchoose(self, index: int) -> "ScrambleState":
		if not 0 <= index < len(self.chosen):
			raise IndexError(f"No chosen tile at position {index}")
		tile = self.chosen[index]
		return self.model_copy(update={
			"chosen": self.chosen[:index] + self.chosen[index + 1 :],
			"remaining": self.remaining + (tile,),
		})

	def reset(self) -> "ScrambleState":
		return self.model_copy(update={"remaining": self.remaining + self.chosen, "chosen": ()})

	@property
	def is_complete(self) -> bool:
		return not self.remaining

	@property
	def answer(self) -> str:
		return self.separator.join(self.chosen)

	@property
	def is_correct(self) -> bool:
		return self.is_complete and _normalize(self.answer) == _normalize(self.target)


def _normalize(text: str) -> str:
	return " ".join(text.split()).strip().lower()
