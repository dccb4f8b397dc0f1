"""Default phrase matching for priority triggers."""

from __future__ import annotations

import re
from collections.abc import Sequence

from agenda.models.priorities import fold_text

_TOKEN = re.compile(r"[^\W_]+")


class PhraseTriggerMatcher:
    """Match user text against trigger phrases.

    A phrase fires when it appears in the text as a whole-word sequence, or
    when at least ``min_token_overlap`` of its words appear anywhere in the
    text. Matching ignores case and, by default, diacritics.
    """

    def __init__(self, *, fold_accents: bool = True, min_token_overlap: float = 1.0) -> None:
        if not 0.0 < min_token_overlap <= 1.0:
            raise ValueError("min_token_overlap must be in (0, 1]")
        self._fold_accents = fold_accents
        self._min_token_overlap = min_token_overlap

    def match(self, text: str, trigger_phrases: Sequence[str]) -> bool:
        return self.score(text, trigger_phrases) > 0.0

    def score(self, text: str, trigger_phrases: Sequence[str]) -> float:
        """Best per-phrase score in [0, 1]; 0.0 means no phrase fired."""
        if not trigger_phrases:
            return 0.0
        text_tokens = self._tokens(text)
        if not text_tokens:
            return 0.0
        joined = f" {' '.join(text_tokens)} "
        best = 0.0
        for phrase in trigger_phrases:
            best = max(best, self._score_phrase(joined, set(text_tokens), phrase))
        return best

    def _score_phrase(self, joined: str, text_tokens: set[str], phrase: str) -> float:
        phrase_tokens = self._tokens(phrase)
        if not phrase_tokens:
            return 0.0
        if f" {' '.join(phrase_tokens)} " in joined:
            return 1.0
        matched = sum(1 for token in phrase_tokens if token in text_tokens)
        overlap = matched / len(phrase_tokens)
        return overlap if overlap >= self._min_token_overlap else 0.0

    def _tokens(self, text: str) -> list[str]:
        normalized = fold_text(text) if self._fold_accents else text.lower()
        return _TOKEN.findall(normalized)


__all__ = ["PhraseTriggerMatcher"]
